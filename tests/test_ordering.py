from __future__ import annotations

from datetime import date

import pytest

from conftest import OWNER, FakeGateway, la_time
from daylog.domain.enums import Direction, TaskStatus
from daylog.domain.errors import NotFoundError, PersistenceError, ValidationError
from daylog.services.ordering import OrderingEngine, next_order
from daylog.services.task_store import TaskStore

TODAY = date(2024, 3, 10)


def _seeded(gateway: FakeGateway, clock, count: int = 3) -> tuple[TaskStore, OrderingEngine, list[str]]:
    ids = [gateway.seed(f"task-{i}", TODAY, order=i * 10).id for i in range(count)]
    store = TaskStore(gateway, now=clock)
    store.load(OWNER)
    return store, OrderingEngine(store), ids


def _orders(store: TaskStore, ids: list[str]) -> list[int]:
    return [store.get(task_id).order for task_id in ids]


def test_next_order_starts_at_zero() -> None:
    assert next_order([], TODAY) == 0


def test_next_order_ignores_finished_history(gateway: FakeGateway) -> None:
    gateway.seed("old done", date(2024, 3, 1), TaskStatus.COMPLETED, order=99, completed_at=la_time(2024, 3, 1, 18))
    gateway.seed("carry", date(2024, 3, 8), order=4)
    gateway.seed("today", TODAY, order=2)

    assert next_order(list(gateway.tasks.values()), TODAY) == 5


def test_step_swaps_with_neighbour(gateway: FakeGateway, clock) -> None:
    store, engine, ids = _seeded(gateway, clock)

    assert engine.reorder_step(ids[2], Direction.UP) is True

    assert _orders(store, ids) == [0, 20, 10]
    assert [t.id for t in engine.pending_by_order()] == [ids[0], ids[2], ids[1]]
    assert gateway.tasks[ids[2]].order == 10


def test_step_up_then_down_restores_order(gateway: FakeGateway, clock) -> None:
    store, engine, ids = _seeded(gateway, clock)
    before = _orders(store, ids)

    engine.reorder_step(ids[1], "up")
    engine.reorder_step(ids[1], "down")

    assert _orders(store, ids) == before


def test_step_at_boundary_is_a_noop(gateway: FakeGateway, clock) -> None:
    store, engine, ids = _seeded(gateway, clock)
    calls = len(gateway.calls)

    assert engine.reorder_step(ids[0], Direction.UP) is False
    assert engine.reorder_step(ids[2], Direction.DOWN) is False
    assert len(gateway.calls) == calls


def test_completed_task_cannot_move(gateway: FakeGateway, clock) -> None:
    done = gateway.seed("done", TODAY, TaskStatus.COMPLETED, completed_at=la_time(2024, 3, 10, 19))
    store, engine, _ = _seeded(gateway, clock)

    with pytest.raises(ValidationError):
        engine.reorder_step(done.id, Direction.UP)


def test_unknown_task_cannot_move(gateway: FakeGateway, clock) -> None:
    _, engine, _ = _seeded(gateway, clock)

    with pytest.raises(NotFoundError):
        engine.reorder_step("missing", Direction.UP)


def test_half_failed_swap_is_undone(gateway: FakeGateway, clock) -> None:
    store, engine, ids = _seeded(gateway, clock)
    gateway.fail("update_task_fields", after=1)

    with pytest.raises(PersistenceError):
        engine.reorder_step(ids[1], Direction.DOWN)

    assert _orders(store, ids) == [0, 10, 20]
    assert [gateway.tasks[i].order for i in ids] == [0, 10, 20]


def test_reorder_to_position_assigns_indexes(gateway: FakeGateway, clock) -> None:
    store, engine, ids = _seeded(gateway, clock)
    wanted = [ids[2], ids[0], ids[1]]

    engine.reorder_to_position(ids[2], 0, wanted)

    assert _orders(store, wanted) == [0, 1, 2]
    assert [gateway.tasks[i].order for i in wanted] == [0, 1, 2]


def test_reorder_to_position_rolls_back_on_failure(gateway: FakeGateway, clock) -> None:
    store, engine, ids = _seeded(gateway, clock)
    seen_during = []
    gateway.fail("update_task_fields", after=1)
    real_enter = gateway._enter

    def spy(operation: str) -> None:
        seen_during.append(_orders(store, ids))
        real_enter(operation)

    gateway._enter = spy

    with pytest.raises(PersistenceError):
        engine.reorder_to_position(ids[2], 0, [ids[2], ids[0], ids[1]])

    assert seen_during[0] == [1, 2, 0]
    assert _orders(store, ids) == [0, 10, 20]
    assert [gateway.tasks[i].order for i in ids] == [0, 10, 20]


@pytest.mark.parametrize(
    "build",
    [
        lambda ids, done: (ids[0], 0, [ids[0], ids[1]]),
        lambda ids, done: (ids[0], 1, [ids[1], ids[0], ids[0]]),
        lambda ids, done: (ids[0], 1, ids),
        lambda ids, done: (done, 0, [done, *ids]),
    ],
    ids=["missing-task", "duplicates", "wrong-index", "completed-task"],
)
def test_reorder_to_position_rejects_bad_input(gateway: FakeGateway, clock, build) -> None:
    done = gateway.seed("done", TODAY, TaskStatus.COMPLETED, completed_at=la_time(2024, 3, 10, 19)).id
    store, engine, ids = _seeded(gateway, clock)
    task_id, index, ordered = build(ids, done)

    with pytest.raises(ValidationError):
        engine.reorder_to_position(task_id, index, ordered)

    assert _orders(store, ids) == [0, 10, 20]


def test_reopened_task_gets_a_free_slot_after_drag(store: TaskStore) -> None:
    engine = OrderingEngine(store)
    a = store.create("a")
    b = store.create("b")
    store.toggle_done(b.id)
    c = store.create("c")
    engine.reorder_to_position(c.id, 0, [c.id, a.id])

    store.toggle_done(b.id)

    pending = engine.pending_by_order()
    assert [t.id for t in pending] == [c.id, a.id, b.id]
    assert len({t.order for t in pending}) == len(pending)

    assert engine.reorder_step(b.id, Direction.UP) is True
    assert [t.id for t in engine.pending_by_order()] == [c.id, b.id, a.id]


def test_step_between_equal_orders_still_moves_one_slot(gateway: FakeGateway, clock) -> None:
    first = gateway.seed("first", TODAY, order=0)
    second = gateway.seed("second", TODAY, order=1)
    third = gateway.seed("third", TODAY, order=1)
    store = TaskStore(gateway, now=clock)
    store.load(OWNER)
    engine = OrderingEngine(store)

    assert engine.reorder_step(third.id, Direction.UP) is True

    pending = engine.pending_by_order()
    assert [t.id for t in pending] == [first.id, third.id, second.id]
    assert [t.order for t in pending] == [0, 1, 2]


def test_reorder_to_position_rolls_back_on_unexpected_error(gateway: FakeGateway, clock) -> None:
    store, engine, ids = _seeded(gateway, clock)
    real_update = gateway.update_task_fields
    writes = []

    def flaky(task_id: str, fields: dict):
        writes.append(task_id)
        if len(writes) == 2:
            raise RuntimeError("connection reset")
        return real_update(task_id, fields)

    gateway.update_task_fields = flaky

    with pytest.raises(RuntimeError):
        engine.reorder_to_position(ids[2], 0, [ids[2], ids[0], ids[1]])

    assert _orders(store, ids) == [0, 10, 20]
    assert [gateway.tasks[i].order for i in ids] == [0, 10, 20]
