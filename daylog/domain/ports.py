from __future__ import annotations

from typing import Any, Protocol

from .entities import TaskDraft, TaskEntity, UserSettings


class TaskGateway(Protocol):
    """Storage operations the task core depends on.

    Every method may raise PersistenceError. Updates and deletes of unknown
    ids raise NotFoundError.
    """

    def fetch_all_tasks(self, owner_id: str) -> list[TaskEntity]: ...

    def insert_task(self, owner_id: str, draft: TaskDraft) -> TaskEntity: ...

    def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> TaskEntity: ...

    def delete_task(self, task_id: str) -> None: ...

    def fetch_settings(self, owner_id: str) -> UserSettings: ...

    def upsert_settings(self, owner_id: str, fields: dict[str, Any]) -> UserSettings: ...
