"""Dashboard sections: tasks due today, in the coming week, or overdue.

Selections work on calendar days only; a due time never moves a task between
sections.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List

from taskboard.helpers.datetime_utils import is_before, is_between, normalize_day
from taskboard.models.task import Task

TODAY = "today"
UPCOMING = "upcoming"
OVERDUE = "overdue"

VIEWS = (TODAY, UPCOMING, OVERDUE)


def _open_top_level(tasks: Iterable[Task]) -> List[Task]:
    return [t for t in tasks if not t.is_completed and not t.is_subtask and t.due_date]


def due_today(tasks: Iterable[Task], now: datetime) -> List[Task]:
    today = normalize_day(now)
    return [t for t in _open_top_level(tasks) if is_between(t.due_date, today, today + timedelta(days=1))]


def due_upcoming(tasks: Iterable[Task], now: datetime, days: int = 7) -> List[Task]:
    """Top-level tasks due from tomorrow through ``days`` days ahead."""

    today = normalize_day(now)
    start = today + timedelta(days=1)
    end = today + timedelta(days=days + 1)
    return [t for t in _open_top_level(tasks) if is_between(t.due_date, start, end)]


def overdue(tasks: Iterable[Task], now: datetime) -> List[Task]:
    """Pending tasks, subtasks included, whose due day is before today."""

    return [t for t in tasks if not t.is_completed and is_before(t.due_date, now)]


def select(view: str, tasks: Iterable[Task], now: datetime) -> List[Task]:
    if view == TODAY:
        return due_today(tasks, now)
    if view == UPCOMING:
        return due_upcoming(tasks, now)
    if view == OVERDUE:
        return overdue(tasks, now)
    raise ValueError(f"Unknown view: {view}")


__all__ = ["OVERDUE", "TODAY", "UPCOMING", "VIEWS", "due_today", "due_upcoming", "overdue", "select"]
