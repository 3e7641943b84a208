from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import Qt, QTimer, QUrl
from PySide6.QtGui import QDesktopServices
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QVBoxLayout,
    QWidget,
)

from daylog.domain.entities import TaskEntity
from daylog.domain.errors import DaylogError
from daylog.domain.links import link_label
from daylog.services.board import DayBoard
from daylog.services.selection import SelectionHooks

from .keymap import KeyboardController

logger = logging.getLogger(__name__)

BoardFactory = Callable[[SelectionHooks, Callable[[TaskEntity, str], None]], DayBoard]

HOTKEYS = "j/k move · n new · e edit · x done · 1-4 priority · ⌘↑/⌘↓ reorder · l link · o open · d delete · ←/→ day · esc clear"
NOTICE_MS = 2500


class MainWindow(QWidget):
    def __init__(self, make_board: BoardFactory):
        super().__init__()
        self.setWindowTitle("Daylog")
        self.resize(720, 760)

        hooks = SelectionHooks(
            on_new_task=self.new_task,
            on_edit=self.edit_task,
            on_delete=self.delete_task,
            on_link=self.edit_link,
            on_open_link=self.open_link,
        )
        self.board = make_board(hooks, self.notify)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)

        header = QHBoxLayout()
        self.day_label = QLabel("")
        self.day_label.setProperty("class", "panel-title")
        self.carryover_label = QLabel("")
        self.carryover_label.setProperty("class", "stats-badge")
        header.addWidget(self.day_label)
        header.addStretch()
        header.addWidget(self.carryover_label)
        layout.addLayout(header)

        self.pending_list = self._build_list()
        self.completed_list = self._build_list()
        layout.addWidget(QLabel("To do"))
        layout.addWidget(self.pending_list, 3)
        layout.addWidget(QLabel("Done"))
        layout.addWidget(self.completed_list, 2)

        self.notice_label = QLabel("")
        layout.addWidget(self.notice_label)

        hotkeys = QFrame()
        hotkeys.setObjectName("HotkeyBar")
        hotkeys_layout = QHBoxLayout(hotkeys)
        hotkeys_layout.setContentsMargins(0, 0, 0, 0)
        hotkeys_layout.addWidget(QLabel(HOTKEYS))
        layout.addWidget(hotkeys)

        self.controller = KeyboardController(self.board, on_error=self.show_error, parent=self)
        self.controller.handled.connect(self.refresh)
        self.installEventFilter(self.controller)
        self.setFocusPolicy(Qt.StrongFocus)

    def _build_list(self) -> QListWidget:
        widget = QListWidget()
        # keys stay with the window so the controller sees them
        widget.setFocusPolicy(Qt.NoFocus)
        widget.itemClicked.connect(self.on_item_clicked)
        return widget

    # -------------------- rendering --------------------
    def refresh(self) -> None:
        view = self.board.projection()
        selected = self.board.selected_task_id

        title = self.board.day_label
        if view.is_read_only:
            title += " (read-only)"
        if self.board.is_syncing:
            title += " · saving…"
        self.day_label.setText(title)
        self.carryover_label.setText(
            f"{view.carryover_count} carried over" if view.carryover_count else ""
        )

        self._fill(self.pending_list, view.pending, selected)
        self._fill(self.completed_list, view.completed, selected)

    def _fill(self, widget: QListWidget, tasks: list[TaskEntity], selected: str | None) -> None:
        widget.clear()
        for row, task in enumerate(tasks):
            text = f"{task.priority.value.upper()}  {task.title}"
            if task.link:
                text += f"  [{link_label(task.link)}]"
            item = QListWidgetItem(text)
            item.setData(Qt.UserRole, task.id)
            widget.addItem(item)
            if task.id == selected:
                widget.setCurrentRow(row)
        if selected not in {task.id for task in tasks}:
            widget.clearSelection()
            widget.setCurrentRow(-1)

    def on_item_clicked(self, item: QListWidgetItem) -> None:
        self.board.selection.select(item.data(Qt.UserRole))
        self.refresh()
        self.setFocus()

    # -------------------- requests from the keyboard --------------------
    def new_task(self) -> None:
        title, ok = QInputDialog.getText(self, "New task", "Title:")
        if ok and title.strip():
            self.board.create_task(title)

    def edit_task(self, task: TaskEntity) -> None:
        title, ok = QInputDialog.getText(self, "Edit task", "Title:", QLineEdit.Normal, task.title)
        if ok and title.strip():
            self.board.edit_task(task.id, title=title)

    def edit_link(self, task: TaskEntity) -> None:
        link, ok = QInputDialog.getText(self, "Link", "URL (empty to remove):", QLineEdit.Normal, task.link or "")
        if ok:
            self.board.set_link(task.id, link)

    def delete_task(self, task: TaskEntity) -> None:
        confirm = QMessageBox.question(self, "Delete task", f"Delete “{task.title}”?")
        if confirm != QMessageBox.Yes:
            return
        self.board.delete_task(task.id)

    def open_link(self, task: TaskEntity) -> None:
        QDesktopServices.openUrl(QUrl(task.link))

    # -------------------- notices --------------------
    def notify(self, task: TaskEntity, message: str) -> None:
        self.notice_label.setText(message)
        QTimer.singleShot(NOTICE_MS, self.notice_label.clear)

    def show_error(self, exc: DaylogError) -> None:
        QMessageBox.warning(self, "Could not save", str(exc))
