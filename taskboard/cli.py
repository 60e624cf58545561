"""Command-line front end for Taskboard."""
from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlmodel import Session

from taskboard.core.log import get_logger
from taskboard.core.priorities import priority_label, priority_rank
from taskboard.core.settings import DB_PATH, REMINDERS
from taskboard.helpers.datetime_utils import parse_date_input
from taskboard.models.calendar_event import CalendarEvent
from taskboard.models.task import CONTEXTS, new_id
from taskboard.services import calendar_sync, task_views
from taskboard.services.data_transfer import DataImportError, export_data, import_data
from taskboard.services.reminder_poller import LogNotifier, ReminderPoller
from taskboard.services.reminders import collect_reminders
from taskboard.services.subtask_suggestions import SubtaskSuggestionError, breakdown_task
from taskboard.services.tasks import TaskService
from taskboard.services.time_blocks import TimeBlockService
from taskboard.services.triage import TriageCriteria, recommend
from taskboard.storage.db import get_engine, init_db
from taskboard.storage.store import KeyValueStore, StorageError

log = get_logger("cli")


def open_store(path: Path) -> KeyValueStore:
    engine = get_engine(path) if path != DB_PATH else get_engine()
    init_db(engine)
    return KeyValueStore(lambda: Session(engine))


def _parse_now(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid timestamp: {value}")


def cmd_add(args, store) -> int:
    try:
        task = TaskService(store).add(
            args.title,
            due_date=args.due,
            due_time=args.time,
            priority=args.priority,
            parent_id=args.parent,
            context=args.context,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    if task is None:
        print("Task could not be saved.", file=sys.stderr)
        return 1
    print(task.id)
    return 0


def cmd_list(args, store) -> int:
    tasks = TaskService(store).list()
    if args.view:
        tasks = task_views.select(args.view, tasks, _parse_now(args.now))
    else:
        tasks = [t for t in tasks if args.all or not t.is_completed]
    if not tasks:
        print("No tasks.")
        return 0
    for task in sorted(tasks, key=lambda t: priority_rank(t.priority)):
        due = " ".join(part for part in (task.due_date, task.due_time) if part)
        mark = "x" if task.is_completed else " "
        suffix = f" (due {due})" if due else ""
        print(f"[{mark}] {task.id}  {task.title} - {priority_label(task.priority)}{suffix}")
    return 0


def cmd_blocks(args, store) -> int:
    service = TimeBlockService(store)
    if not args.date:
        for day in service.days():
            print(day)
        return 0
    try:
        blocks = service.list(args.date)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    for block in blocks:
        title = f" {block.title}" if block.title else ""
        print(f"{block.id}  {block.start_time}-{block.end_time}{title} [{len(block.task_ids)} tasks]")
    return 0


def cmd_block_add(args, store) -> int:
    try:
        block = TimeBlockService(store).add(
            args.date,
            start_time=args.start,
            end_time=args.end,
            title=args.title or "",
            task_ids=args.task,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    if block is None:
        print("Time block could not be saved.", file=sys.stderr)
        return 1
    print(block.id)
    return 0


def cmd_events(args, store) -> int:
    try:
        events = calendar_sync.events_for_day(store, args.date)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    for event in events:
        print(f"{event.id}  {event.start} - {event.end}  {event.title}")
    return 0


def cmd_event_add(args, store) -> int:
    start, end = _parse_now(args.start), _parse_now(args.end)
    event = CalendarEvent(
        id=new_id(),
        title=args.title,
        start=start.strftime("%Y-%m-%dT%H:%M:%S"),
        end=end.strftime("%Y-%m-%dT%H:%M:%S"),
        description=args.description or "",
    )
    try:
        calendar_sync.add_event(store, event)
    except StorageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(event.id)
    return 0


def cmd_event_delete(args, store) -> int:
    try:
        removed = calendar_sync.delete_event(store, args.id)
    except StorageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if removed is None:
        print(f"No event {args.id}", file=sys.stderr)
        return 1
    print(f"Deleted {removed.title}")
    return 0


def cmd_reminders(args, store) -> int:
    now = _parse_now(args.now)
    reminders = collect_reminders(TaskService(store).list(), now)
    if not reminders:
        print("No reminders.")
        return 0
    for reminder in reminders:
        path = " / ".join(reminder.path + (reminder.task.title,))
        print(f"[{reminder.urgency:>9}] {path}: {reminder.message}")
    return 0


def cmd_watch(args, store) -> int:
    tasks = TaskService(store)
    poller = ReminderPoller(tasks.list, LogNotifier())
    if args.notify:
        poller.request_permission()

    async def _run() -> None:
        poller.start()
        try:
            while True:
                await asyncio.sleep(args.interval)
                for reminder in poller.reminders:
                    print(f"[{reminder.urgency:>9}] {reminder.task.title}: {reminder.message}")
        finally:
            poller.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass
    return 0


def cmd_suggest(args, store) -> int:
    criteria = TriageCriteria(time_minutes=args.time, energy=args.energy, blocker=args.blocker)
    for item in recommend(criteria, TaskService(store).list()):
        print(f"- {item.title}")
    return 0


def cmd_sync_day(args, store) -> int:
    day = parse_date_input(args.date)
    if day is None:
        print(f"Error: invalid date {args.date!r}", file=sys.stderr)
        return 2
    blocks = TimeBlockService(store).list(day)
    events = calendar_sync.sync(store, blocks, day, TaskService(store).list())
    print(f"{len(blocks)} blocks synced; {len(events)} calendar events stored.")
    return 0


def cmd_export(args, store) -> int:
    try:
        text = export_data(store)
    except StorageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
    else:
        print(text)
    return 0


def cmd_import(args, store) -> int:
    try:
        data = import_data(store, Path(args.file).read_text(encoding="utf-8"))
    except (OSError, DataImportError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Imported {len(data['tasks'])} tasks.")
    return 0


def cmd_breakdown(args, store) -> int:
    try:
        titles = breakdown_task(args.title, args.description or "")
    except SubtaskSuggestionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    for title in titles:
        print(f"- {title}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskboard", description=__doc__ or "")
    parser.add_argument(
        "--db",
        type=Path,
        default=DB_PATH,
        help="Path to the SQLite store (default: %(default)s)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="Add a task")
    p.add_argument("title")
    p.add_argument("--due", help="Due date, YYYY-MM-DD")
    p.add_argument("--time", help="Due time, HH:MM")
    p.add_argument("--priority", choices=["critical", "high", "medium", "low"])
    p.add_argument("--parent", help="Parent task id")
    p.add_argument("--context", choices=CONTEXTS)
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("list", help="List tasks, highest priority first")
    p.add_argument("--all", action="store_true", help="Include completed tasks")
    p.add_argument("--view", choices=task_views.VIEWS, help="Only one dashboard section")
    p.add_argument("--now", help="Evaluate at this ISO timestamp instead of the clock")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("reminders", help="List overdue and upcoming tasks")
    p.add_argument("--now", help="Evaluate at this ISO timestamp instead of the clock")
    p.set_defaults(func=cmd_reminders)

    p = sub.add_parser("watch", help="Keep re-evaluating reminders")
    p.add_argument("--interval", type=float, default=REMINDERS.poll_interval_sec)
    p.add_argument("--notify", action="store_true", help="Emit reminder notifications to the log")
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("suggest", help="What should I work on now?")
    p.add_argument("--time", type=int, required=True, help="Available minutes")
    p.add_argument("--energy", choices=["low", "medium", "high"], default="medium")
    p.add_argument("--blocker", help="too many choices | decision fatigue | need a quick win")
    p.set_defaults(func=cmd_suggest)

    p = sub.add_parser("blocks", help="List planned days, or one day's time blocks")
    p.add_argument("date", nargs="?")
    p.set_defaults(func=cmd_blocks)

    p = sub.add_parser("block-add", help="Plan a time block on a day")
    p.add_argument("date")
    p.add_argument("start", help="HH:MM")
    p.add_argument("end", help="HH:MM")
    p.add_argument("--title")
    p.add_argument("--task", action="append", default=[], help="Assigned task id (repeatable)")
    p.set_defaults(func=cmd_block_add)

    p = sub.add_parser("events", help="List calendar events of a day")
    p.add_argument("date")
    p.set_defaults(func=cmd_events)

    p = sub.add_parser("event-add", help="Add a calendar event")
    p.add_argument("title")
    p.add_argument("start", help="ISO timestamp")
    p.add_argument("end", help="ISO timestamp")
    p.add_argument("--description")
    p.set_defaults(func=cmd_event_add)

    p = sub.add_parser("event-delete", help="Delete a calendar event")
    p.add_argument("id")
    p.set_defaults(func=cmd_event_delete)

    p = sub.add_parser("sync-day", help="Copy a day's time blocks into the calendar")
    p.add_argument("date")
    p.set_defaults(func=cmd_sync_day)

    p = sub.add_parser("export", help="Export tasks, categories and projects as JSON")
    p.add_argument("--output", "-o")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Replace data with an exported JSON document")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("breakdown", help="Suggest subtasks for a task title")
    p.add_argument("title")
    p.add_argument("--description")
    p.set_defaults(func=cmd_breakdown)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    store = open_store(args.db)
    try:
        return args.func(args, store)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
        return 2


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
