"""Projection of the task collection onto a single day.

The current day shows everything created today plus unfinished work carried
over from earlier days. Any earlier day is a read-only log of the tasks
completed on it.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from daylog.domain import days
from daylog.domain.entities import DayProjection, TaskEntity
from daylog.domain.errors import ValidationError


def pending_eligible(tasks: Iterable[TaskEntity], today: date) -> list[TaskEntity]:
    return [
        task
        for task in tasks
        if task.day_created == today or (task.day_created < today and task.is_pending)
    ]


def completion_day(task: TaskEntity, tz_name: str, rollover_hour: int) -> date | None:
    if task.completed_at is None:
        return None
    return days.day_for(task.completed_at, tz_name, rollover_hour)


def _pending_key(task: TaskEntity) -> tuple[int, int, datetime]:
    return (task.priority.rank, task.order, task.created_at)


def _completed_key(task: TaskEntity) -> datetime:
    return task.completed_at or task.created_at


def project(
    tasks: Iterable[TaskEntity],
    selected_day: date,
    today: date,
    tz_name: str,
    rollover_hour: int,
) -> DayProjection:
    if selected_day == today:
        visible = pending_eligible(tasks, today)
    else:
        visible = [
            task
            for task in tasks
            if task.is_completed and completion_day(task, tz_name, rollover_hour) == selected_day
        ]

    pending = sorted((t for t in visible if t.is_pending), key=_pending_key)
    completed = sorted((t for t in visible if t.is_completed), key=_completed_key, reverse=True)
    carryover = 0
    if selected_day == today:
        carryover = sum(1 for t in pending if t.day_created < today)

    return DayProjection(
        day=selected_day,
        today=today,
        pending=pending,
        completed=completed,
        carryover_count=carryover,
    )


def days_with_tasks(tasks: Iterable[TaskEntity], tz_name: str, rollover_hour: int) -> list[date]:
    """Days that have something to show, newest first."""
    found: set[date] = set()
    for task in tasks:
        found.add(task.day_created)
        finished = completion_day(task, tz_name, rollover_hour)
        if finished is not None:
            found.add(finished)
    return sorted(found, reverse=True)


class DayCursor:
    """The day currently on screen; never ahead of today."""

    def __init__(self, today: date) -> None:
        self.selected_day = today

    def can_go_next(self, today: date) -> bool:
        return self.selected_day < today

    def go_previous(self) -> date:
        self.selected_day = days.shift_day(self.selected_day, -1)
        return self.selected_day

    def go_next(self, today: date) -> bool:
        if not self.can_go_next(today):
            return False
        self.selected_day = days.shift_day(self.selected_day, 1)
        return True

    def go_today(self, today: date) -> None:
        self.selected_day = today

    def go_to(self, day: date, today: date) -> None:
        if day > today:
            raise ValidationError(f"Cannot view {day.isoformat()}: it is after today")
        self.selected_day = day

    def clamp(self, today: date) -> None:
        # today can move backwards when the rollover settings change
        if self.selected_day > today:
            self.selected_day = today
