from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from enum import StrEnum
from typing import Any, Callable, Iterator, Optional

from daylog.domain import days
from daylog.domain.entities import TaskDraft, TaskEntity, UserSettings
from daylog.domain.enums import Priority, TaskStatus
from daylog.domain.errors import DaylogError, NotFoundError, ValidationError
from daylog.domain.links import normalize_link
from daylog.domain.ports import TaskGateway

from .ordering import next_order

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = {"id", "created_at", "day_created", "completed_at"}
EDITABLE_FIELDS = {"title", "status", "priority", "link", "order"}


class StoreEvent(StrEnum):
    LOADED = "loaded"
    CLEARED = "cleared"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    SETTINGS = "settings"


Listener = Callable[[StoreEvent, Optional[TaskEntity]], None]


def clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Task title must not be empty")
    return cleaned


class TaskStore:
    """In-memory tasks of the signed-in owner, kept equal to what storage confirmed.

    Mutations go to the gateway first and only land here once they succeeded.
    The ordering engine is the one caller allowed to stage order changes ahead
    of storage (see ``stage_orders``).
    """

    def __init__(
        self,
        gateway: TaskGateway,
        now: Callable[[], datetime] = days.utcnow,
        defaults: UserSettings | None = None,
    ) -> None:
        self._gateway = gateway
        self._now = now
        self._defaults = defaults or UserSettings()
        self._tasks: dict[str, TaskEntity] = {}
        self._listeners: list[Listener] = []
        self._in_flight = 0
        self.owner_id: str | None = None
        self.settings: UserSettings = self._defaults

    # -------------------- lifecycle --------------------
    def load(self, owner_id: str) -> list[TaskEntity]:
        with self._request():
            tasks = self._gateway.fetch_all_tasks(owner_id)
            settings = self._gateway.fetch_settings(owner_id)
        self.owner_id = owner_id
        self.settings = settings
        self._tasks = {task.id: task for task in tasks}
        logger.info("Loaded %d tasks for owner %s", len(tasks), owner_id)
        self._emit(StoreEvent.LOADED, None)
        return self.tasks

    def clear(self) -> None:
        self.owner_id = None
        self.settings = self._defaults
        self._tasks = {}
        self._emit(StoreEvent.CLEARED, None)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # -------------------- queries --------------------
    @property
    def tasks(self) -> list[TaskEntity]:
        return list(self._tasks.values())

    def now(self) -> datetime:
        return self._now()

    @property
    def today(self) -> date:
        return days.today(self.settings.timezone, self.settings.day_rollover_hour, self._now())

    @property
    def is_syncing(self) -> bool:
        return self._in_flight > 0

    def get(self, task_id: str) -> TaskEntity | None:
        return self._tasks.get(task_id)

    # -------------------- task operations --------------------
    def create(
        self,
        title: str,
        priority: Priority = Priority.P2,
        link: str | None = None,
    ) -> TaskEntity:
        owner_id = self._require_owner()
        current_day = self.today
        draft = TaskDraft(
            title=clean_title(title),
            priority=_coerce_priority(priority),
            order=next_order(self.tasks, current_day),
            link=normalize_link(link),
            created_at=self._now(),
            day_created=current_day,
        )
        with self._request():
            task = self._gateway.insert_task(owner_id, draft)
        self._tasks[task.id] = task
        logger.debug("Created task %s on %s", task.id, task.day_created)
        self._emit(StoreEvent.CREATED, task)
        return task

    def update(self, task_id: str, fields: dict[str, Any]) -> TaskEntity:
        self._require_owner()
        current = self._tasks.get(task_id)
        if current is None:
            raise NotFoundError(task_id)

        payload = self._normalize_fields(fields)
        status = payload.get("status")
        if status is not None and status != current.status:
            payload["completed_at"] = self._now() if status is TaskStatus.COMPLETED else None
            if status is TaskStatus.PENDING and "order" not in payload:
                # a reopened task keeps no claim on its old slot
                others = [task for task in self._tasks.values() if task.id != task_id]
                payload["order"] = next_order(others, self.today)

        try:
            with self._request():
                task = self._gateway.update_task_fields(task_id, payload)
        except NotFoundError:
            logger.warning("Task %s disappeared from storage, dropping it", task_id)
            removed = self._tasks.pop(task_id, None)
            self._emit(StoreEvent.DELETED, removed)
            raise
        self._tasks[task_id] = task
        self._emit(StoreEvent.UPDATED, task)
        return task

    def toggle_done(self, task_id: str) -> TaskEntity:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return self.update(task_id, {"status": task.status.flipped})

    def delete(self, task_id: str) -> bool:
        self._require_owner()
        if task_id not in self._tasks:
            return False
        try:
            with self._request():
                self._gateway.delete_task(task_id)
        except NotFoundError:
            logger.info("Task %s was already gone from storage", task_id)
            return False
        removed = self._tasks.pop(task_id)
        self._emit(StoreEvent.DELETED, removed)
        return True

    # -------------------- ordering support --------------------
    def snapshot_orders(self, task_ids: list[str]) -> dict[str, int]:
        return {task_id: self._tasks[task_id].order for task_id in task_ids}

    def stage_orders(self, orders: dict[str, int]) -> None:
        """Set order values locally without talking to storage."""
        for task_id, order in orders.items():
            task = self._tasks.get(task_id)
            if task is not None:
                self._tasks[task_id] = replace(task, order=order)
        self._emit(StoreEvent.UPDATED, None)

    def write_order(self, task_id: str, order: int) -> TaskEntity:
        """Persist one order value, without touching the local copy."""
        with self._request():
            return self._gateway.update_task_fields(task_id, {"order": order})

    def accept(self, tasks: list[TaskEntity]) -> None:
        for task in tasks:
            self._tasks[task.id] = task
        self._emit(StoreEvent.UPDATED, None)

    # -------------------- settings --------------------
    def update_settings(self, **fields: Any) -> UserSettings:
        owner_id = self._require_owner()
        unknown = set(fields) - {"timezone", "day_rollover_hour", "celebration_mode"}
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        if "timezone" in fields:
            days.resolve_timezone(fields["timezone"])
        if "day_rollover_hour" in fields:
            days.validate_rollover_hour(fields["day_rollover_hour"])
        if "celebration_mode" in fields:
            fields["celebration_mode"] = bool(fields["celebration_mode"])
        with self._request():
            self.settings = self._gateway.upsert_settings(owner_id, fields)
        self._emit(StoreEvent.SETTINGS, None)
        return self.settings

    # -------------------- internals --------------------
    @contextmanager
    def _request(self) -> Iterator[None]:
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1

    def _require_owner(self) -> str:
        if self.owner_id is None:
            raise DaylogError("No owner is signed in")
        return self.owner_id

    def _emit(self, event: StoreEvent, task: TaskEntity | None) -> None:
        for listener in self._listeners:
            listener(event, task)

    @staticmethod
    def _normalize_fields(fields: dict[str, Any]) -> dict[str, Any]:
        blocked = set(fields) & IMMUTABLE_FIELDS
        if blocked:
            raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(blocked))}")
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")

        normalized = dict(fields)
        try:
            if "status" in normalized:
                normalized["status"] = TaskStatus(normalized["status"])
            if "priority" in normalized:
                normalized["priority"] = Priority(normalized["priority"])
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if "title" in normalized:
            normalized["title"] = clean_title(normalized["title"])
        if "link" in normalized:
            normalized["link"] = normalize_link(normalized["link"])
        if "order" in normalized and not isinstance(normalized["order"], int):
            raise ValidationError("Order must be an integer")
        return normalized


def _coerce_priority(value: Priority | str) -> Priority:
    try:
        return Priority(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown priority: {value!r}") from exc
