# taskboard/services/reminder_poller.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Iterable, List, Optional, Protocol, Set, Tuple

from taskboard.core.log import get_logger
from taskboard.core.settings import REMINDERS, ReminderSettings
from taskboard.models.task import Task
from taskboard.services.reminders import Reminder, collect_reminders, needs_notification

log = get_logger("reminders")

PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_DEFAULT = "default"


class Notifier(Protocol):
    permission: str

    def request_permission(self) -> str: ...

    def show(self, title: str, body: str, dedupe_key: str) -> None: ...


class LogNotifier:
    """Desktop-notification stand-in that writes reminders to the log."""

    def __init__(self, permission: str = PERMISSION_DEFAULT):
        self.permission = permission

    def request_permission(self) -> str:
        self.permission = PERMISSION_GRANTED
        return self.permission

    def show(self, title: str, body: str, dedupe_key: str) -> None:
        log.info("%s: %s (%s)", title, body, dedupe_key)


class MemoryNotifier:
    """Records shown notifications; ``answer`` is returned on permission requests."""

    def __init__(self, permission: str = PERMISSION_GRANTED, answer: str = PERMISSION_GRANTED):
        self.permission = permission
        self.answer = answer
        self.shown: List[Tuple[str, str, str]] = []

    def request_permission(self) -> str:
        self.permission = self.answer
        return self.permission

    def show(self, title: str, body: str, dedupe_key: str) -> None:
        self.shown.append((title, body, dedupe_key))


@dataclass(frozen=True)
class ReminderSnapshot:
    evaluated_at: datetime
    reminders: Tuple[Reminder, ...]
    notified: Tuple[str, ...]
    panel_open: bool


def notification_key(task: Task) -> str:
    return f"task-{task.id}"


TaskSource = Callable[[], Iterable[Task]]
Runner = Callable[[Callable[[], Awaitable[None]]], "asyncio.Task[None]"]


def _default_runner(fn: Callable[[], Awaitable[None]]) -> "asyncio.Task[None]":
    return asyncio.create_task(fn())


class ReminderPoller:
    """Re-evaluates the reminder set on task changes and on a fixed tick.

    Urgency changes with the wall clock alone, so an unchanged task list still
    has to be re-classified every ``poll_interval_sec``.
    """

    IDLE = "idle"
    EVALUATING = "evaluating"

    def __init__(
        self,
        tasks: Optional[Iterable[Task] | TaskSource] = None,
        notifier: Optional[Notifier] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        settings: ReminderSettings = REMINDERS,
        runner: Optional[Runner] = None,
    ) -> None:
        if callable(tasks):
            self._source: TaskSource = tasks
        else:
            snapshot = list(tasks or [])
            self._source = lambda: snapshot
        self.notifier = notifier or LogNotifier()
        self.clock = clock
        self.settings = settings
        self._runner = runner or _default_runner
        self._state = self.IDLE
        self._reminders: Tuple[Reminder, ...] = ()
        self._notified: Set[str] = set()
        self._panel_open = False
        self._had_candidates = False
        self._last: Optional[ReminderSnapshot] = None
        self._tick_task: Optional["asyncio.Task[None]"] = None

    # ---------- state ----------
    @property
    def state(self) -> str:
        return self._state

    @property
    def reminders(self) -> Tuple[Reminder, ...]:
        return self._reminders

    @property
    def panel_open(self) -> bool:
        return self._panel_open

    @property
    def running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def open_panel(self) -> None:
        self._panel_open = True

    def dismiss_panel(self) -> None:
        self._panel_open = False

    def request_permission(self) -> str:
        permission = self.notifier.request_permission()
        log.info("Notification permission: %s", permission)
        return permission

    # ---------- evaluation ----------
    def tasks_changed(self, tasks: Iterable[Task]) -> ReminderSnapshot:
        snapshot = list(tasks)
        self._source = lambda: snapshot
        return self.evaluate()

    def evaluate(self) -> ReminderSnapshot:
        if self._state == self.EVALUATING and self._last is not None:
            return self._last
        self._state = self.EVALUATING
        try:
            now = self.clock()
            tasks = list(self._source())
            reminders = tuple(collect_reminders(tasks, now, settings=self.settings))
            self._reminders = reminders

            has_candidates = bool(reminders)
            if has_candidates and not self._had_candidates and not self._panel_open:
                self._panel_open = True
            self._had_candidates = has_candidates

            self._notify(tasks, now)
            self._last = ReminderSnapshot(
                evaluated_at=now,
                reminders=reminders,
                notified=tuple(sorted(self._notified)),
                panel_open=self._panel_open,
            )
            return self._last
        finally:
            self._state = self.IDLE

    def _notify(self, tasks: List[Task], now: datetime) -> None:
        due = [t for t in tasks if needs_notification(t, now, settings=self.settings)]
        due_keys = {notification_key(t) for t in due}
        # a task that left the window may notify again once it re-enters
        self._notified &= due_keys
        if getattr(self.notifier, "permission", None) != PERMISSION_GRANTED:
            return
        for task in due:
            key = notification_key(task)
            if key in self._notified:
                continue
            self.notifier.show(self.settings.notification_title, f'"{task.title}" is due soon!', key)
            self._notified.add(key)
            log.debug("Notified %s", key)

    # ---------- timer ----------
    def start(self) -> "asyncio.Task[None]":
        """Evaluate now and then every ``poll_interval_sec`` until :meth:`stop`."""

        if self._tick_task is not None and not self._tick_task.done():
            return self._tick_task
        self._tick_task = self._runner(self._loop)
        return self._tick_task

    def stop(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
        self._tick_task = None

    async def _loop(self) -> None:
        interval = self.settings.poll_interval_sec
        while True:
            try:
                self.evaluate()
            except Exception:
                log.exception("Reminder evaluation failed; retrying on next tick")
            await asyncio.sleep(interval)


__all__ = [
    "LogNotifier",
    "MemoryNotifier",
    "Notifier",
    "PERMISSION_DEFAULT",
    "PERMISSION_DENIED",
    "PERMISSION_GRANTED",
    "ReminderPoller",
    "ReminderSnapshot",
    "notification_key",
]
