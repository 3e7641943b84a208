from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    return uuid.uuid4().hex


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, default=new_task_id)
    owner_id = Column(String(64), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    priority = Column(String(2), nullable=False, default="p2")
    link = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    day_created = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)


class SettingsModel(Base):
    __tablename__ = "settings"

    owner_id = Column(String(64), primary_key=True)
    timezone = Column(String(64), nullable=False)
    day_rollover_hour = Column(Integer, nullable=False)
    celebration_mode = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
