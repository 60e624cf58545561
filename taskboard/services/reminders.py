"""Due-date classification of tasks into urgency bands.

Two paths exist. A task with a due date *and* a due time is classified by the
signed number of minutes until that instant; a task with only a due date is
classified by comparing calendar days. ``now`` is always passed in explicitly.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from taskboard.core.settings import REMINDERS, ReminderSettings
from taskboard.helpers.datetime_utils import (
    combine_due,
    exact_minutes_until,
    format_clock,
    format_day,
    minutes_until,
    parse_date_input,
    to_local_naive,
)
from taskboard.models.task import Task
from taskboard.services.task_tree import TaskIndex

OVERDUE = "overdue"
IMMINENT = "imminent"
UPCOMING = "upcoming"
SCHEDULED = "scheduled"

URGENCIES = (OVERDUE, IMMINENT, UPCOMING, SCHEDULED)


@dataclass(frozen=True)
class Reminder:
    task: Task
    urgency: str
    message: str
    # None for date-only tasks
    minutes_until: Optional[int] = None
    path: Tuple[str, ...] = ()
    due_at: Optional[datetime] = None

    @property
    def task_id(self) -> str:
        return self.task.id


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _classify_timed(diff: int, due_at: datetime, cfg: ReminderSettings) -> Tuple[str, str]:
    if diff < 0:
        overdue = -diff
        if overdue < 60:
            return OVERDUE, f"{_plural(overdue, 'minute')} overdue!"
        if overdue < 120:
            return OVERDUE, "1 hour overdue!"
        if overdue < 1440:
            # the hour count rounds up: 121 minutes late is "3 hours"
            return OVERDUE, f"{_plural(-(diff // 60), 'hour')} overdue!"
        return OVERDUE, "Over 1 day overdue!"
    if diff <= cfg.imminent_minutes:
        return IMMINENT, f"Due in {_plural(diff, 'minute')}!"
    if diff <= cfg.imminent_max_minutes:
        return IMMINENT, "Due in less than an hour!"
    if diff <= cfg.upcoming_max_minutes:
        return UPCOMING, f"Due in about {_plural(diff // 60, 'hour')}!"
    return SCHEDULED, f"Due at {format_clock(due_at)}"


def _classify_dated(due_day: date, today: date) -> Tuple[str, str]:
    if due_day < today:
        days = (today - due_day).days
        if days == 1:
            return OVERDUE, "Due yesterday!"
        return OVERDUE, f"{days} days overdue!"
    if due_day == today:
        return IMMINENT, "Due today!"
    if due_day == today + timedelta(days=1):
        return UPCOMING, "Due tomorrow!"
    return SCHEDULED, f"Due on {format_day(due_day)}"


def classify(
    task: Task,
    now: datetime,
    *,
    settings: ReminderSettings = REMINDERS,
    index: Optional[TaskIndex] = None,
) -> Optional[Reminder]:
    """Return the urgency band and message for ``task``, or ``None``.

    Completed tasks and tasks without a parseable due date are not reminder
    candidates. An unparseable due time falls back to the date-only path.
    """

    if task.is_completed:
        return None
    due_day = parse_date_input(task.due_date)
    if due_day is None:
        return None

    local_now = to_local_naive(now)
    path = tuple(index.path_titles(task)) if index is not None else ()

    due_at = combine_due(due_day, task.due_time) if task.due_time else None
    if due_at is not None:
        diff = minutes_until(due_at, local_now)
        urgency, message = _classify_timed(diff, due_at, settings)
        return Reminder(
            task=task,
            urgency=urgency,
            message=message,
            minutes_until=diff,
            path=path,
            due_at=due_at,
        )

    urgency, message = _classify_dated(due_day, local_now.date())
    return Reminder(task=task, urgency=urgency, message=message, path=path)


def urgency_of(task: Task, now: datetime, *, settings: ReminderSettings = REMINDERS) -> Optional[str]:
    reminder = classify(task, now, settings=settings)
    return reminder.urgency if reminder else None


def relative_message(task: Task, now: datetime, *, settings: ReminderSettings = REMINDERS) -> str:
    reminder = classify(task, now, settings=settings)
    return reminder.message if reminder else ""


def _in_reminder_window(reminder: Reminder, now: datetime, settings: ReminderSettings) -> bool:
    # window edges compare the exact difference, not the rounded display value
    if reminder.due_at is not None:
        diff = exact_minutes_until(reminder.due_at, now)
        return -settings.overdue_window_minutes < diff <= settings.upcoming_max_minutes
    return reminder.urgency in (OVERDUE, IMMINENT, UPCOMING)


def is_reminder_candidate(
    task: Task, now: datetime, *, settings: ReminderSettings = REMINDERS
) -> bool:
    """Timed tasks due within the window, or date-only tasks due by tomorrow."""

    reminder = classify(task, now, settings=settings)
    return reminder is not None and _in_reminder_window(reminder, now, settings)


def collect_reminders(
    tasks: Iterable[Task],
    now: datetime,
    *,
    settings: ReminderSettings = REMINDERS,
) -> List[Reminder]:
    """Classify every task against ``now`` and keep the reminder candidates."""

    index = TaskIndex(tasks)
    result: List[Reminder] = []
    for task in index.tasks:
        reminder = classify(task, now, settings=settings, index=index)
        if reminder is not None and _in_reminder_window(reminder, now, settings):
            result.append(reminder)
    return result


def needs_notification(
    task: Task, now: datetime, *, settings: ReminderSettings = REMINDERS
) -> bool:
    """True for timed tasks due inside the (after, before] notification window."""

    if task.is_completed or not task.due_time:
        return False
    due_at = combine_due(task.due_date, task.due_time)
    if due_at is None:
        return False
    diff = exact_minutes_until(due_at, now)
    return settings.notify_after_minutes < diff <= settings.notify_before_minutes


__all__ = [
    "IMMINENT",
    "OVERDUE",
    "SCHEDULED",
    "UPCOMING",
    "URGENCIES",
    "Reminder",
    "classify",
    "collect_reminders",
    "is_reminder_candidate",
    "needs_notification",
    "relative_message",
    "urgency_of",
]
