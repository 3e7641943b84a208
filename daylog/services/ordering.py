from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from daylog.domain.entities import TaskEntity
from daylog.domain.enums import Direction
from daylog.domain.errors import NotFoundError, PersistenceError, ValidationError

from .day_view import pending_eligible

if TYPE_CHECKING:
    from .task_store import TaskStore

logger = logging.getLogger(__name__)


def next_order(tasks: list[TaskEntity], today: date) -> int:
    """Order for a new task so it lands after everything on today's list."""
    orders = [task.order for task in pending_eligible(tasks, today)]
    return max(orders) + 1 if orders else 0


class OrderingEngine:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def pending_by_order(self) -> list[TaskEntity]:
        visible = pending_eligible(self._store.tasks, self._store.today)
        return sorted(
            (task for task in visible if task.is_pending),
            key=lambda task: (task.order, task.created_at),
        )

    def reorder_step(self, task_id: str, direction: Direction | str) -> bool:
        """Swap order values with the neighbouring pending task.

        Returns False when the task is already first (up) or last (down).
        """
        direction = Direction(direction)
        task = self._require_pending(task_id)
        ordered = self.pending_by_order()
        ids = [t.id for t in ordered]
        if task.id not in ids:
            raise ValidationError("Only tasks on today's list can be reordered")

        index = ids.index(task.id)
        neighbour_index = index - 1 if direction is Direction.UP else index + 1
        if neighbour_index < 0 or neighbour_index >= len(ordered):
            return False
        neighbour = ordered[neighbour_index]
        if neighbour.order == task.order:
            # equal keys cannot be swapped, renumber the whole list instead
            ids[index], ids[neighbour_index] = ids[neighbour_index], ids[index]
            self.reorder_to_position(task.id, neighbour_index, ids)
            logger.debug("Moved task %s %s by renumbering", task.id, direction)
            return True

        moved = self._store.write_order(task.id, neighbour.order)
        try:
            displaced = self._store.write_order(neighbour.id, task.order)
        except BaseException:
            logger.warning("Swap of %s and %s failed halfway", task.id, neighbour.id)
            self._restore_remote({task.id: task.order})
            raise
        self._store.accept([moved, displaced])
        logger.debug("Moved task %s %s", task.id, direction)
        return True

    def reorder_to_position(self, task_id: str, target_index: int, ordered_ids: list[str]) -> None:
        """Give every listed task its index as order, all or nothing.

        The new order is visible immediately; if storage rejects any write the
        previous values come back.
        """
        self._validate_full_order(task_id, target_index, ordered_ids)
        snapshot = self._store.snapshot_orders(ordered_ids)
        wanted = {tid: index for index, tid in enumerate(ordered_ids)}
        changed = [tid for tid in ordered_ids if snapshot[tid] != wanted[tid]]
        if not changed:
            return

        self._store.stage_orders(wanted)
        written: list[str] = []
        saved: list[TaskEntity] = []
        try:
            for tid in changed:
                saved.append(self._store.write_order(tid, wanted[tid]))
                written.append(tid)
        except BaseException:
            logger.warning("Reorder failed after %d of %d writes, rolling back", len(written), len(changed))
            self._store.stage_orders(snapshot)
            self._restore_remote({tid: snapshot[tid] for tid in written})
            raise
        self._store.accept(saved)

    def _require_pending(self, task_id: str) -> TaskEntity:
        task = self._store.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        if not task.is_pending:
            raise ValidationError("Completed tasks cannot be reordered")
        return task

    def _validate_full_order(self, task_id: str, target_index: int, ordered_ids: list[str]) -> None:
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError("Reorder list contains duplicate ids")
        if not 0 <= target_index < len(ordered_ids) or ordered_ids[target_index] != task_id:
            raise ValidationError(f"Task {task_id} is not at position {target_index}")
        for tid in ordered_ids:
            self._require_pending(tid)
        expected = {task.id for task in self.pending_by_order()}
        if set(ordered_ids) != expected:
            raise ValidationError("Reorder list must contain exactly today's pending tasks")

    def _restore_remote(self, orders: dict[str, int]) -> None:
        for tid, order in orders.items():
            try:
                self._store.write_order(tid, order)
            except (PersistenceError, NotFoundError):
                logger.exception("Could not restore order of task %s", tid)
