from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

from PySide6.QtWidgets import QApplication, QMessageBox, QStyleFactory
from sqlalchemy.exc import SQLAlchemyError

from daylog.config import CONFIG, AppConfig
from daylog.domain.entities import TaskEntity, UserSettings
from daylog.domain.errors import DaylogError
from daylog.infra.db import init_db, make_engine, make_session_factory
from daylog.infra.logging import setup_logging
from daylog.infra.repository import SqlTaskGateway
from daylog.services.board import DayBoard
from daylog.services.selection import SelectionHooks
from daylog.services.task_store import TaskStore
from daylog.ui.main_window import MainWindow

logger = logging.getLogger(__name__)


def build_board(
    config: AppConfig = CONFIG,
    hooks: SelectionHooks | None = None,
    on_notify: Optional[Callable[[TaskEntity, str], None]] = None,
) -> DayBoard:
    engine = make_engine(config.database_url)
    init_db(engine, create_schema=config.database_url.startswith("sqlite"))
    defaults = UserSettings(
        timezone=config.default_timezone,
        day_rollover_hour=config.default_rollover_hour,
    )
    gateway = SqlTaskGateway(make_session_factory(engine), defaults=defaults)
    return DayBoard(TaskStore(gateway, defaults=defaults), hooks=hooks, on_notify=on_notify)


def main() -> None:
    setup_logging()
    app = QApplication(sys.argv)
    app.setStyle(QStyleFactory.create("Fusion"))

    try:
        window = MainWindow(lambda hooks, notify: build_board(hooks=hooks, on_notify=notify))
        window.board.sign_in(CONFIG.owner_id)
    except (DaylogError, SQLAlchemyError) as exc:
        logger.error("Could not open task list: %s", exc)
        QMessageBox.critical(None, "Storage error", str(exc))
        sys.exit(1)

    window.refresh()
    window.show()
    window.setFocus()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
