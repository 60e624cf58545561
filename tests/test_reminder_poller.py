import asyncio
from datetime import datetime, timedelta

from taskboard.core.settings import ReminderSettings
from taskboard.models import Task
from taskboard.services.reminder_poller import (
    PERMISSION_DEFAULT,
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    MemoryNotifier,
    ReminderPoller,
)

NOW = datetime(2025, 5, 17, 12, 0)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, minutes):
        self.now += timedelta(minutes=minutes)


def _task(task_id="t1", title="Call dentist", due_time="12:30", due_date="2025-05-17", **fields):
    return Task(id=task_id, title=title, due_date=due_date, due_time=due_time, **fields)


def test_panel_opens_once_per_empty_to_non_empty_transition():
    poller = ReminderPoller([], MemoryNotifier(), clock=FakeClock(NOW))
    assert poller.evaluate().panel_open is False

    poller.tasks_changed([_task()])
    assert poller.panel_open is True

    poller.dismiss_panel()
    poller.evaluate()
    poller.tasks_changed([_task(), _task("t2", due_time="12:45")])
    assert poller.panel_open is False

    poller.tasks_changed([])
    poller.tasks_changed([_task()])
    assert poller.panel_open is True


def test_open_panel_keeps_it_open_without_candidates():
    poller = ReminderPoller([], MemoryNotifier(), clock=FakeClock(NOW))
    poller.open_panel()
    snapshot = poller.evaluate()
    assert snapshot.panel_open is True
    assert snapshot.reminders == ()


def test_notification_shown_once_per_task():
    notifier = MemoryNotifier()
    clock = FakeClock(NOW)
    poller = ReminderPoller([_task()], notifier, clock=clock)

    poller.evaluate()
    clock.advance(1)
    snapshot = poller.evaluate()

    assert notifier.shown == [("Task Reminder", '"Call dentist" is due soon!', "task-t1")]
    assert snapshot.notified == ("task-t1",)


def test_no_notification_without_permission():
    notifier = MemoryNotifier(permission=PERMISSION_DEFAULT)
    poller = ReminderPoller([_task()], notifier, clock=FakeClock(NOW))
    poller.evaluate()
    assert notifier.shown == []

    assert poller.request_permission() == PERMISSION_GRANTED
    poller.evaluate()
    assert [key for _, _, key in notifier.shown] == ["task-t1"]


def test_denied_permission_never_notifies():
    notifier = MemoryNotifier(permission=PERMISSION_DEFAULT, answer=PERMISSION_DENIED)
    poller = ReminderPoller([_task()], notifier, clock=FakeClock(NOW))
    assert poller.request_permission() == PERMISSION_DENIED
    poller.evaluate()
    assert notifier.shown == []
    # the reminder list itself does not depend on permission
    assert [r.task_id for r in poller.reminders] == ["t1"]


def test_notification_window_edges():
    notifier = MemoryNotifier()
    tasks = [
        _task("in-60", due_time="13:00"),
        _task("in-61", due_time="13:01"),
        _task("late-4", due_time="11:56"),
        _task("late-5", due_time="11:55"),
        _task("undated-time", due_date=None, due_time="12:10"),
        _task("date-only", due_time=None),
        _task("done", due_time="12:10", status="completed"),
    ]
    ReminderPoller(tasks, notifier, clock=FakeClock(NOW)).evaluate()
    assert sorted(key for _, _, key in notifier.shown) == ["task-in-60", "task-late-4"]


def test_rescheduled_task_notifies_again_after_leaving_window():
    notifier = MemoryNotifier()
    poller = ReminderPoller([], notifier, clock=FakeClock(NOW))

    poller.tasks_changed([_task(due_time="12:30")])
    poller.tasks_changed([_task(due_time="15:00")])
    poller.tasks_changed([_task(due_time="12:20")])

    assert [key for _, _, key in notifier.shown] == ["task-t1", "task-t1"]


def test_clock_alone_moves_task_into_window():
    notifier = MemoryNotifier()
    clock = FakeClock(NOW)
    poller = ReminderPoller([_task(due_time="14:00")], notifier, clock=clock)

    poller.evaluate()
    assert notifier.shown == []
    assert poller.reminders[0].urgency == "upcoming"

    clock.advance(75)
    poller.evaluate()
    assert poller.reminders[0].urgency == "imminent"
    assert poller.reminders[0].message == "Due in less than an hour!"
    assert len(notifier.shown) == 1


def test_task_source_callable_is_read_on_every_pass():
    current = []
    poller = ReminderPoller(lambda: current, MemoryNotifier(), clock=FakeClock(NOW))
    assert poller.evaluate().reminders == ()
    current.append(_task())
    assert [r.task_id for r in poller.evaluate().reminders] == ["t1"]


def test_state_is_evaluating_only_during_a_pass():
    seen = []

    def source():
        seen.append(poller.state)
        return [_task()]

    poller = ReminderPoller(source, MemoryNotifier(), clock=FakeClock(NOW))
    assert poller.state == ReminderPoller.IDLE
    poller.evaluate()
    assert seen == [ReminderPoller.EVALUATING]
    assert poller.state == ReminderPoller.IDLE


def test_start_polls_until_stopped():
    calls = []

    def clock():
        calls.append(1)
        return NOW

    settings = ReminderSettings(poll_interval_sec=0.01)
    poller = ReminderPoller([_task()], MemoryNotifier(), clock=clock, settings=settings)

    async def scenario():
        task = poller.start()
        assert poller.start() is task
        assert poller.running
        await asyncio.sleep(0.05)
        poller.stop()
        await asyncio.sleep(0)
        assert not poller.running
        return len(calls)

    evaluated = asyncio.run(scenario())
    assert evaluated >= 2
    assert len(calls) == evaluated


def test_loop_survives_failing_evaluation():
    attempts = []

    def source():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("store offline")
        return [_task()]

    settings = ReminderSettings(poll_interval_sec=0.01)
    poller = ReminderPoller(source, MemoryNotifier(), clock=FakeClock(NOW), settings=settings)

    async def scenario():
        poller.start()
        await asyncio.sleep(0.05)
        poller.stop()

    asyncio.run(scenario())
    assert len(attempts) >= 2
    assert [r.task_id for r in poller.reminders] == ["t1"]
    assert poller.state == ReminderPoller.IDLE
