from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from .enums import Direction, KeyAction, Priority, TaskStatus


@dataclass(frozen=True)
class TaskEntity:
    id: str
    title: str
    status: TaskStatus
    priority: Priority
    order: int
    created_at: datetime
    day_created: date
    completed_at: Optional[datetime] = None
    link: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is TaskStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED


@dataclass(frozen=True)
class TaskDraft:
    """Fields of a task that has not been persisted yet."""

    title: str
    priority: Priority
    order: int
    created_at: datetime
    day_created: date
    status: TaskStatus = TaskStatus.PENDING
    link: str | None = None


@dataclass(frozen=True)
class UserSettings:
    timezone: str = "America/Los_Angeles"
    day_rollover_hour: int = 17
    celebration_mode: bool = False


@dataclass(frozen=True)
class KeyPress:
    action: KeyAction
    priority: Priority | None = None
    direction: Direction | None = None


@dataclass(frozen=True)
class DayProjection:
    day: date
    today: date
    pending: list[TaskEntity] = field(default_factory=list)
    completed: list[TaskEntity] = field(default_factory=list)
    carryover_count: int = 0

    @property
    def is_read_only(self) -> bool:
        return self.day != self.today

    @property
    def combined(self) -> list[TaskEntity]:
        return [*self.pending, *self.completed]

    def find(self, task_id: str | None) -> TaskEntity | None:
        if task_id is None:
            return None
        return next((t for t in self.combined if t.id == task_id), None)
