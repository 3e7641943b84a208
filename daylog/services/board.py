from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Optional

from daylog.domain import days
from daylog.domain.entities import DayProjection, KeyPress, TaskEntity, UserSettings
from daylog.domain.enums import Direction, KeyAction, Priority
from daylog.domain.errors import ReadOnlyDayError

from . import day_view
from .ordering import OrderingEngine
from .selection import SelectionHooks, SelectionMachine
from .task_store import TaskStore

logger = logging.getLogger(__name__)

CELEBRATION_MESSAGE = "🔥 CRUSHED IT!"
COMPLETED_MESSAGE = "Task completed"


def completion_message(settings: UserSettings) -> str:
    return CELEBRATION_MESSAGE if settings.celebration_mode else COMPLETED_MESSAGE


class DayBoard:
    """Everything a UI needs to show and drive one owner's day.

    ``hooks`` receives the open-a-dialog style requests. ``on_notify`` gets
    ``(task, message)`` whenever a task is completed.
    """

    def __init__(
        self,
        store: TaskStore,
        hooks: SelectionHooks | None = None,
        on_notify: Optional[Callable[[TaskEntity, str], None]] = None,
    ) -> None:
        self.store = store
        self.ordering = OrderingEngine(store)
        self.cursor = day_view.DayCursor(store.today)
        self._on_notify = on_notify
        self._caller_on_completed = hooks.on_completed if hooks else None
        hooks = replace(
            hooks or SelectionHooks(),
            on_previous_day=self.go_previous_day,
            on_next_day=self.go_next_day,
            on_completed=self._announce_completion,
        )
        self.selection = SelectionMachine(self.projection, store, self.ordering, hooks)

    # -------------------- session --------------------
    def sign_in(self, owner_id: str) -> None:
        self.store.load(owner_id)
        self.cursor.go_today(self.store.today)

    def sign_out(self) -> None:
        self.store.clear()
        self.cursor.go_today(self.store.today)

    # -------------------- view state --------------------
    def projection(self) -> DayProjection:
        today = self.store.today
        self.cursor.clamp(today)
        settings = self.store.settings
        return day_view.project(
            self.store.tasks,
            self.cursor.selected_day,
            today,
            settings.timezone,
            settings.day_rollover_hour,
        )

    @property
    def pending(self) -> list[TaskEntity]:
        return self.projection().pending

    @property
    def completed(self) -> list[TaskEntity]:
        return self.projection().completed

    @property
    def carryover_count(self) -> int:
        return self.projection().carryover_count

    @property
    def is_read_only(self) -> bool:
        return self.projection().is_read_only

    @property
    def is_syncing(self) -> bool:
        return self.store.is_syncing

    @property
    def selected_day(self) -> date:
        return self.cursor.selected_day

    @property
    def day_label(self) -> str:
        settings = self.store.settings
        return days.format_day(
            self.cursor.selected_day,
            settings.timezone,
            settings.day_rollover_hour,
            self.store.now(),
        )

    @property
    def selected_task_id(self) -> str | None:
        return self.selection.selected_task_id

    @property
    def selected_task(self) -> TaskEntity | None:
        return self.selection.selected_task

    def days_with_tasks(self) -> list[date]:
        settings = self.store.settings
        return day_view.days_with_tasks(self.store.tasks, settings.timezone, settings.day_rollover_hour)

    # -------------------- navigation --------------------
    def go_previous_day(self) -> None:
        self.cursor.go_previous()
        self.selection.deselect()

    def go_next_day(self) -> None:
        if self.cursor.go_next(self.store.today):
            self.selection.deselect()

    def go_today(self) -> None:
        self.cursor.go_today(self.store.today)
        self.selection.deselect()

    def go_to(self, day: date) -> None:
        self.cursor.go_to(day, self.store.today)
        self.selection.deselect()

    # -------------------- keyboard --------------------
    def handle_key(self, press: KeyPress, in_text_entry: bool = False) -> bool:
        return self.selection.handle(press, in_text_entry=in_text_entry)

    def actions(self) -> dict[KeyAction, Callable[[], bool]]:
        """Zero-argument callables for buttons mirroring the shortcuts."""
        machine = self.selection
        return {
            KeyAction.NAVIGATE_DOWN: lambda: machine.navigate(Direction.DOWN),
            KeyAction.NAVIGATE_UP: lambda: machine.navigate(Direction.UP),
            KeyAction.NEW_TASK: machine.request_new_task,
            KeyAction.EDIT: machine.request_edit,
            KeyAction.DELETE: machine.request_delete,
            KeyAction.LINK: machine.request_link,
            KeyAction.OPEN_LINK: machine.open_link,
            KeyAction.TOGGLE_DONE: machine.toggle_done,
            KeyAction.DESELECT: machine.deselect,
            KeyAction.PREVIOUS_DAY: lambda: machine.handle(KeyPress(KeyAction.PREVIOUS_DAY)),
            KeyAction.NEXT_DAY: lambda: machine.handle(KeyPress(KeyAction.NEXT_DAY)),
        }

    # -------------------- mutations from dialogs --------------------
    def create_task(self, title: str, priority: Priority = Priority.P2, link: str | None = None) -> TaskEntity:
        self._require_writable()
        return self.store.create(title, priority, link)

    def edit_task(self, task_id: str, **fields: Any) -> TaskEntity:
        self._require_writable()
        return self.store.update(task_id, fields)

    def set_link(self, task_id: str, link: str | None) -> TaskEntity:
        self._require_writable()
        return self.store.update(task_id, {"link": link})

    def delete_task(self, task_id: str) -> bool:
        self._require_writable()
        return self.store.delete(task_id)

    def reorder_to_position(self, task_id: str, target_index: int, ordered_ids: list[str]) -> None:
        self._require_writable()
        self.ordering.reorder_to_position(task_id, target_index, ordered_ids)

    def update_settings(self, **fields: Any) -> UserSettings:
        settings = self.store.update_settings(**fields)
        self.cursor.clamp(self.store.today)
        return settings

    # -------------------- internals --------------------
    def _require_writable(self) -> None:
        if self.is_read_only:
            raise ReadOnlyDayError(f"{self.cursor.selected_day.isoformat()} is read-only")

    def _announce_completion(self, task: TaskEntity) -> None:
        message = completion_message(self.store.settings)
        logger.debug("Task %s completed", task.id)
        if self._caller_on_completed is not None:
            self._caller_on_completed(task)
        if self._on_notify is not None:
            self._on_notify(task, message)
