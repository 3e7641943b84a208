from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from daylog.domain.entities import TaskDraft, TaskEntity, UserSettings
from daylog.domain.enums import Priority, TaskStatus
from daylog.domain.errors import NotFoundError, PersistenceError, ValidationError

from .models import SettingsModel, TaskModel

logger = logging.getLogger(__name__)

TASK_COLUMNS = {
    "title": "title",
    "status": "status",
    "priority": "priority",
    "link": "link",
    "order": "order_index",
    "completed_at": "completed_at",
}

SETTINGS_COLUMNS = {"timezone", "day_rollover_hour", "celebration_mode"}


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # sqlite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        title=model.title,
        status=TaskStatus(model.status),
        priority=Priority(model.priority),
        order=model.order_index,
        link=model.link or None,
        created_at=_aware(model.created_at),
        completed_at=_aware(model.completed_at),
        day_created=model.day_created,
    )


def _to_settings(model: SettingsModel) -> UserSettings:
    return UserSettings(
        timezone=model.timezone,
        day_rollover_hour=model.day_rollover_hour,
        celebration_mode=model.celebration_mode,
    )


def _column_value(value: Any) -> Any:
    if isinstance(value, (TaskStatus, Priority)):
        return value.value
    return value


class SqlTaskGateway:
    """SQLAlchemy-backed storage for tasks and per-owner settings.

    A sqlite URL gives the single-device mode, a server URL the shared one.
    """

    def __init__(self, session_factory: sessionmaker, defaults: UserSettings | None = None) -> None:
        self._session_factory = session_factory
        self._defaults = defaults or UserSettings()

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Storage failure while trying to %s", action)
            raise PersistenceError(f"Could not {action}") from exc

    def fetch_all_tasks(self, owner_id: str) -> list[TaskEntity]:
        with self._session("load tasks") as session:
            stmt = (
                select(TaskModel)
                .where(TaskModel.owner_id == owner_id)
                .order_by(TaskModel.order_index.asc(), TaskModel.created_at.asc())
            )
            return [_to_entity(task) for task in session.scalars(stmt)]

    def insert_task(self, owner_id: str, draft: TaskDraft) -> TaskEntity:
        title = draft.title.strip()
        if not title:
            raise ValidationError("Task title must not be empty")
        with self._session("create task") as session:
            task = TaskModel(
                owner_id=owner_id,
                title=title,
                status=draft.status.value,
                priority=draft.priority.value,
                link=draft.link,
                order_index=draft.order,
                day_created=draft.day_created,
                created_at=draft.created_at,
                completed_at=None,
            )
            session.add(task)
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> TaskEntity:
        unknown = set(fields) - set(TASK_COLUMNS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        with self._session("update task") as session:
            task = session.get(TaskModel, task_id)
            if not task:
                raise NotFoundError(task_id)
            for key, value in fields.items():
                setattr(task, TASK_COLUMNS[key], _column_value(value))
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def delete_task(self, task_id: str) -> None:
        with self._session("delete task") as session:
            task = session.get(TaskModel, task_id)
            if not task:
                raise NotFoundError(task_id)
            session.delete(task)
            session.commit()

    def fetch_settings(self, owner_id: str) -> UserSettings:
        with self._session("load settings") as session:
            row = session.get(SettingsModel, owner_id)
            if row is None:
                row = self._default_settings_row(owner_id)
                session.add(row)
                session.commit()
            return _to_settings(row)

    def upsert_settings(self, owner_id: str, fields: dict[str, Any]) -> UserSettings:
        unknown = set(fields) - SETTINGS_COLUMNS
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        with self._session("save settings") as session:
            row = session.get(SettingsModel, owner_id)
            if row is None:
                row = self._default_settings_row(owner_id)
                session.add(row)
            for key, value in fields.items():
                setattr(row, key, value)
            session.commit()
            return _to_settings(row)

    def _default_settings_row(self, owner_id: str) -> SettingsModel:
        return SettingsModel(
            owner_id=owner_id,
            timezone=self._defaults.timezone,
            day_rollover_hour=self._defaults.day_rollover_hour,
            celebration_mode=self._defaults.celebration_mode,
        )
