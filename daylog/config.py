from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from daylog.domain import days
from daylog.domain.errors import ValidationError


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class AppConfig:
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    owner_id: str = "local"
    default_timezone: str = "America/Los_Angeles"
    default_rollover_hour: int = 17


def parse_rollover_hour(raw: str) -> int:
    try:
        hour = int(raw)
    except ValueError as exc:
        raise ValidationError(f"DEFAULT_ROLLOVER_HOUR must be an integer, got {raw!r}") from exc
    return days.validate_rollover_hour(hour)


load_env()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{PROJECT_ROOT / 'daylog.db'}"

CONFIG = AppConfig(
    database_url=DATABASE_URL,
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
    owner_id=os.getenv("DAYLOG_OWNER", "local").strip() or "local",
    default_timezone=os.getenv("DEFAULT_TIMEZONE", "America/Los_Angeles"),
    default_rollover_hour=parse_rollover_hour(os.getenv("DEFAULT_ROLLOVER_HOUR", "17")),
)
