from __future__ import annotations


class DaylogError(Exception):
    """Base class for errors raised by the task core."""


class ValidationError(DaylogError):
    """Raised before any persistence call when input is rejected."""


class ReadOnlyDayError(ValidationError):
    """Raised when a mutation is requested while viewing a past day."""


class PersistenceError(DaylogError):
    """Raised when the storage backend fails to load or save."""


class NotFoundError(DaylogError):
    """Raised when a task id is no longer present in storage."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id
