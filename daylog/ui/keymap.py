from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QEvent, QObject, Qt, Signal
from PySide6.QtGui import QKeyEvent
from PySide6.QtWidgets import (
    QAbstractSpinBox,
    QApplication,
    QComboBox,
    QLineEdit,
    QPlainTextEdit,
    QTextEdit,
    QWidget,
)

from daylog.domain.entities import KeyPress
from daylog.domain.enums import Direction, KeyAction, Priority
from daylog.domain.errors import DaylogError
from daylog.services.board import DayBoard

logger = logging.getLogger(__name__)

TEXT_ENTRY_WIDGETS = (QLineEdit, QTextEdit, QPlainTextEdit, QAbstractSpinBox)

PLAIN_KEYS = {
    Qt.Key.Key_J: KeyAction.NAVIGATE_DOWN,
    Qt.Key.Key_Down: KeyAction.NAVIGATE_DOWN,
    Qt.Key.Key_K: KeyAction.NAVIGATE_UP,
    Qt.Key.Key_Up: KeyAction.NAVIGATE_UP,
    Qt.Key.Key_Left: KeyAction.PREVIOUS_DAY,
    Qt.Key.Key_Right: KeyAction.NEXT_DAY,
    Qt.Key.Key_N: KeyAction.NEW_TASK,
    Qt.Key.Key_A: KeyAction.NEW_TASK,
    Qt.Key.Key_E: KeyAction.EDIT,
    Qt.Key.Key_Return: KeyAction.EDIT,
    Qt.Key.Key_Enter: KeyAction.EDIT,
    Qt.Key.Key_D: KeyAction.DELETE,
    Qt.Key.Key_Backspace: KeyAction.DELETE,
    Qt.Key.Key_L: KeyAction.LINK,
    Qt.Key.Key_O: KeyAction.OPEN_LINK,
    Qt.Key.Key_X: KeyAction.TOGGLE_DONE,
    Qt.Key.Key_Space: KeyAction.TOGGLE_DONE,
    Qt.Key.Key_Escape: KeyAction.DESELECT,
}

PRIORITY_KEYS = {
    Qt.Key.Key_1: Priority.P0,
    Qt.Key.Key_2: Priority.P1,
    Qt.Key.Key_3: Priority.P2,
    Qt.Key.Key_4: Priority.P3,
}

REORDER_KEYS = {
    Qt.Key.Key_Up: Direction.UP,
    Qt.Key.Key_Down: Direction.DOWN,
}

REORDER_MODIFIERS = Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.MetaModifier
BLOCKING_MODIFIERS = REORDER_MODIFIERS | Qt.KeyboardModifier.AltModifier | Qt.KeyboardModifier.ShiftModifier


def key_press_for(key: int, modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier) -> KeyPress | None:
    """Translate a Qt key code and modifier set into a board key press."""
    if modifiers & REORDER_MODIFIERS and key in REORDER_KEYS:
        return KeyPress(KeyAction.REORDER, direction=REORDER_KEYS[key])
    if modifiers & BLOCKING_MODIFIERS:
        return None
    if key in PRIORITY_KEYS:
        return KeyPress(KeyAction.SET_PRIORITY, priority=PRIORITY_KEYS[key])
    action = PLAIN_KEYS.get(key)
    return KeyPress(action) if action is not None else None


def is_text_entry(widget: QWidget | None) -> bool:
    if widget is None:
        return False
    if isinstance(widget, QComboBox):
        return widget.isEditable()
    return isinstance(widget, TEXT_ENTRY_WIDGETS)


class KeyboardController(QObject):
    """Event filter feeding key presses of a window into a DayBoard.

    ``handled`` fires after every press the board acted on, and after failed
    ones, so the window can redraw.
    """

    handled = Signal()

    def __init__(
        self,
        board: DayBoard,
        on_error: Callable[[DaylogError], None] | None = None,
        parent: QObject | None = None,
        focus_widget: Callable[[], QWidget | None] = QApplication.focusWidget,
    ) -> None:
        super().__init__(parent)
        self.board = board
        self.on_error = on_error
        self._focus_widget = focus_widget

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if event.type() != QEvent.Type.KeyPress or not isinstance(event, QKeyEvent):
            return False
        press = key_press_for(event.key(), event.modifiers())
        if press is None:
            return False
        try:
            acted = self.board.handle_key(press, in_text_entry=is_text_entry(self._focus_widget()))
        except DaylogError as exc:
            logger.warning("Shortcut %s failed: %s", press.action, exc)
            if self.on_error is not None:
                self.on_error(exc)
            self.handled.emit()
            return True
        if acted:
            self.handled.emit()
        return acted
