"""Keyboard focus over the day view.

The machine only ever sees the ordered lists of the current projection:
pending tasks in display order followed by completed ones. It holds at most
one selected task id and turns key presses into store calls or requests to
the UI layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from daylog.domain.entities import DayProjection, KeyPress, TaskEntity
from daylog.domain.enums import Direction, KeyAction, Priority

from .ordering import OrderingEngine
from .task_store import StoreEvent, TaskStore

logger = logging.getLogger(__name__)

TaskRequest = Optional[Callable[[TaskEntity], None]]
Request = Optional[Callable[[], None]]


@dataclass
class SelectionHooks:
    """Callbacks into the UI. Unset hooks make the matching action a no-op."""

    on_new_task: Request = None
    on_edit: TaskRequest = None
    on_delete: TaskRequest = None
    on_link: TaskRequest = None
    on_open_link: TaskRequest = None
    on_completed: TaskRequest = None
    on_previous_day: Request = None
    on_next_day: Request = None


class SelectionMachine:
    def __init__(
        self,
        view: Callable[[], DayProjection],
        store: TaskStore,
        ordering: OrderingEngine,
        hooks: SelectionHooks | None = None,
    ) -> None:
        self._view = view
        self._store = store
        self._ordering = ordering
        self.hooks = hooks or SelectionHooks()
        self._selected: str | None = None
        store.add_listener(self._on_store_event)

    @property
    def selected_task_id(self) -> str | None:
        task = self._view().find(self._selected)
        return task.id if task else None

    @property
    def selected_task(self) -> TaskEntity | None:
        return self._view().find(self._selected)

    def handle(self, press: KeyPress, in_text_entry: bool = False) -> bool:
        """Run one key press. Returns True when it changed or requested something."""
        if in_text_entry:
            return False

        action = press.action
        if action is KeyAction.NAVIGATE_DOWN:
            return self.navigate(Direction.DOWN)
        if action is KeyAction.NAVIGATE_UP:
            return self.navigate(Direction.UP)
        if action is KeyAction.DESELECT:
            return self.deselect()
        if action is KeyAction.PREVIOUS_DAY:
            return _call(self.hooks.on_previous_day)
        if action is KeyAction.NEXT_DAY:
            return _call(self.hooks.on_next_day)
        if action is KeyAction.NEW_TASK:
            return self.request_new_task()
        if action is KeyAction.EDIT:
            return self.request_edit()
        if action is KeyAction.DELETE:
            return self.request_delete()
        if action is KeyAction.LINK:
            return self.request_link()
        if action is KeyAction.OPEN_LINK:
            return self.open_link()
        if action is KeyAction.TOGGLE_DONE:
            return self.toggle_done()
        if action is KeyAction.SET_PRIORITY and press.priority is not None:
            return self.set_priority(press.priority)
        if action is KeyAction.REORDER and press.direction is not None:
            return self.reorder(press.direction)
        return False

    # -------------------- focus --------------------
    def navigate(self, direction: Direction) -> bool:
        ids = [task.id for task in self._view().combined]
        if not ids:
            return False
        if self._selected is None:
            self._selected = ids[0] if direction is Direction.DOWN else ids[-1]
        elif self._selected not in ids:
            self._selected = ids[0]
        else:
            index = ids.index(self._selected)
            if direction is Direction.DOWN:
                index = min(index + 1, len(ids) - 1)
            else:
                index = max(index - 1, 0)
            self._selected = ids[index]
        return True

    def select(self, task_id: str | None) -> bool:
        if task_id is not None and self._view().find(task_id) is None:
            return False
        self._selected = task_id
        return True

    def deselect(self) -> bool:
        if self._selected is None:
            return False
        self._selected = None
        return True

    # -------------------- requests to the UI --------------------
    def request_new_task(self) -> bool:
        if self._view().is_read_only:
            return False
        return _call(self.hooks.on_new_task)

    def request_edit(self) -> bool:
        return self._request(self.hooks.on_edit)

    def request_delete(self) -> bool:
        return self._request(self.hooks.on_delete)

    def request_link(self) -> bool:
        return self._request(self.hooks.on_link)

    def open_link(self) -> bool:
        task = self._editable_selection()
        if task is None or not task.link:
            return False
        return _call(self.hooks.on_open_link, task)

    # -------------------- mutations --------------------
    def toggle_done(self) -> bool:
        view = self._view()
        if view.is_read_only:
            return False
        task = view.find(self._selected)
        if task is None:
            return False

        if task.is_completed:
            self._store.toggle_done(task.id)
            return True

        pending_ids = [t.id for t in view.pending]
        index = pending_ids.index(task.id)
        if index + 1 < len(pending_ids):
            follow: str | None = pending_ids[index + 1]
        elif index > 0:
            follow = pending_ids[index - 1]
        else:
            follow = None

        done = self._store.toggle_done(task.id)
        self._selected = follow
        logger.debug("Completed %s, focus moves to %s", task.id, follow)
        _call(self.hooks.on_completed, done)
        return True

    def set_priority(self, priority: Priority) -> bool:
        task = self._editable_selection()
        if task is None:
            return False
        self._store.update(task.id, {"priority": priority})
        return True

    def reorder(self, direction: Direction) -> bool:
        task = self._editable_selection()
        if task is None or not task.is_pending:
            return False
        return self._ordering.reorder_step(task.id, direction)

    # -------------------- internals --------------------
    def _editable_selection(self) -> TaskEntity | None:
        view = self._view()
        if view.is_read_only:
            return None
        return view.find(self._selected)

    def _request(self, hook: TaskRequest) -> bool:
        task = self._editable_selection()
        if task is None:
            return False
        return _call(hook, task)

    def _on_store_event(self, event: StoreEvent, task: TaskEntity | None) -> None:
        if event in (StoreEvent.LOADED, StoreEvent.CLEARED):
            self._selected = None
        elif event is StoreEvent.DELETED and task is not None and task.id == self._selected:
            self._selected = None


def _call(hook, *args) -> bool:
    if hook is None:
        return False
    hook(*args)
    return True
