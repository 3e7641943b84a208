from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"

    @property
    def flipped(self) -> TaskStatus:
        if self is TaskStatus.PENDING:
            return TaskStatus.COMPLETED
        return TaskStatus.PENDING


class Priority(StrEnum):
    P0 = "p0"
    P1 = "p1"
    P2 = "p2"
    P3 = "p3"

    @property
    def rank(self) -> int:
        return int(self.value[1])


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"


class KeyAction(StrEnum):
    NAVIGATE_DOWN = "navigate_down"
    NAVIGATE_UP = "navigate_up"
    NEW_TASK = "new_task"
    EDIT = "edit"
    DELETE = "delete"
    LINK = "link"
    OPEN_LINK = "open_link"
    TOGGLE_DONE = "toggle_done"
    SET_PRIORITY = "set_priority"
    REORDER = "reorder"
    DESELECT = "deselect"
    PREVIOUS_DAY = "previous_day"
    NEXT_DAY = "next_day"
