from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from daylog.domain.entities import TaskDraft, TaskEntity, UserSettings
from daylog.domain.enums import Priority, TaskStatus
from daylog.domain.errors import NotFoundError, PersistenceError
from daylog.services.board import DayBoard
from daylog.services.task_store import TaskStore

LA = "America/Los_Angeles"
OWNER = "owner-1"


def la_time(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=ZoneInfo(LA)).astimezone(timezone.utc)


class FakeClock:
    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def __call__(self) -> datetime:
        return self.instant


class FakeGateway:
    def __init__(self, settings: UserSettings | None = None) -> None:
        self.tasks: dict[str, TaskEntity] = {}
        self.settings: dict[str, UserSettings] = {}
        self.default_settings = settings or UserSettings(timezone=LA, day_rollover_hour=17)
        self.calls: list[str] = []
        self._ids = itertools.count(1)
        self._failures: dict[str, int] = {}
        self.on_call = None

    def fail(self, operation: str, after: int = 0) -> None:
        """Make ``operation`` raise PersistenceError once, after ``after`` more successes."""
        self._failures[operation] = after

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.on_call is not None:
            self.on_call(operation)
        if operation in self._failures:
            if self._failures[operation] == 0:
                del self._failures[operation]
                raise PersistenceError(f"{operation} failed")
            self._failures[operation] -= 1

    def seed(
        self,
        title: str,
        day_created: date,
        status: TaskStatus = TaskStatus.PENDING,
        priority: Priority = Priority.P2,
        order: int = 0,
        completed_at: datetime | None = None,
        created_at: datetime | None = None,
        link: str | None = None,
    ) -> TaskEntity:
        task = TaskEntity(
            id=f"t{next(self._ids)}",
            title=title,
            status=status,
            priority=priority,
            order=order,
            link=link,
            created_at=created_at or datetime(day_created.year, day_created.month, day_created.day, 20, tzinfo=timezone.utc),
            completed_at=completed_at,
            day_created=day_created,
        )
        self.tasks[task.id] = task
        return task

    def fetch_all_tasks(self, owner_id: str) -> list[TaskEntity]:
        self._enter("fetch_all_tasks")
        return list(self.tasks.values())

    def insert_task(self, owner_id: str, draft: TaskDraft) -> TaskEntity:
        self._enter("insert_task")
        task = TaskEntity(
            id=f"t{next(self._ids)}",
            title=draft.title,
            status=draft.status,
            priority=draft.priority,
            order=draft.order,
            link=draft.link,
            created_at=draft.created_at,
            completed_at=None,
            day_created=draft.day_created,
        )
        self.tasks[task.id] = task
        return task

    def update_task_fields(self, task_id: str, fields: dict) -> TaskEntity:
        self._enter("update_task_fields")
        if task_id not in self.tasks:
            raise NotFoundError(task_id)
        self.tasks[task_id] = replace(self.tasks[task_id], **fields)
        return self.tasks[task_id]

    def delete_task(self, task_id: str) -> None:
        self._enter("delete_task")
        if task_id not in self.tasks:
            raise NotFoundError(task_id)
        del self.tasks[task_id]

    def fetch_settings(self, owner_id: str) -> UserSettings:
        self._enter("fetch_settings")
        return self.settings.setdefault(owner_id, self.default_settings)

    def upsert_settings(self, owner_id: str, fields: dict) -> UserSettings:
        self._enter("upsert_settings")
        current = self.settings.get(owner_id, self.default_settings)
        self.settings[owner_id] = replace(current, **fields)
        return self.settings[owner_id]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(la_time(2024, 3, 10, 18))


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store(gateway: FakeGateway, clock: FakeClock) -> TaskStore:
    store = TaskStore(gateway, now=clock)
    store.load(OWNER)
    return store


@pytest.fixture
def board(gateway: FakeGateway, clock: FakeClock) -> DayBoard:
    board = DayBoard(TaskStore(gateway, now=clock))
    board.sign_in(OWNER)
    return board
