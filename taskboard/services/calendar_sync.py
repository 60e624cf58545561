"""Planner time blocks -> calendar events.

Event ids are derived from block ids (``planner-<block id>``), and a sync
replaces every planner event of the synced day, so running it again with the
same input stores exactly the same collection.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from taskboard.core.log import get_logger
from taskboard.core.settings import CALENDAR
from taskboard.helpers.datetime_utils import DateLike, date_key, format_12h, parse_time_input
from taskboard.models.calendar_event import CalendarEvent
from taskboard.models.task import Task
from taskboard.models.time_block import TimeBlock
from taskboard.storage.store import StorageError, Store

log = get_logger("calendar")


def _day_key(day: DateLike) -> str:
    key = date_key(day)
    if key is None:
        raise ValueError(f"Invalid calendar date: {day!r}")
    return key


def _stamp(day_key: str, value: str) -> str:
    parsed = parse_time_input(value)
    clock = parsed.strftime("%H:%M") if parsed else value
    return f"{day_key}T{clock}:00"


def event_title(block: TimeBlock) -> str:
    title = f"{format_12h(block.start_time)} - {format_12h(block.end_time)}"
    if block.title:
        title += f": {block.title}"
    return title


def event_description(block: TimeBlock, tasks: Iterable[Task]) -> str:
    assigned = set(block.task_ids)
    titles = [t.title for t in tasks if t.id in assigned]
    if not titles:
        return ""
    return CALENDAR.description_prefix + ", ".join(titles)


def to_event(block: TimeBlock, day: DateLike, tasks: Iterable[Task]) -> CalendarEvent:
    """Map one time block on ``day`` to its calendar event."""

    key = _day_key(day)
    return CalendarEvent(
        id=f"{CALENDAR.event_id_prefix}{block.id}",
        title=event_title(block),
        start=_stamp(key, block.start_time),
        end=_stamp(key, block.end_time),
        description=event_description(block, tasks),
        source=CALENDAR.planner_source,
        color=block.color or CALENDAR.default_color,
        is_flexible=True,
    )


def _parse(raw: Iterable[Any]) -> List[CalendarEvent]:
    events: List[CalendarEvent] = []
    for item in raw:
        try:
            events.append(CalendarEvent.model_validate(item))
        except ValidationError:
            log.warning("Skipping malformed calendar event: %r", item)
    return events


def _stored(store: Store) -> List[Any]:
    """Raw stored entries, written back untouched unless a change targets them."""

    raw = store.load(CALENDAR.events_key, None)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise StorageError(f"Refusing to overwrite non-list {CALENDAR.events_key} payload")
    return raw


def _entry_id(item: Any) -> Optional[str]:
    return item.get("id") if isinstance(item, dict) else None


def load_events(store: Store) -> List[CalendarEvent]:
    """Return stored calendar events; malformed entries are skipped."""

    raw = store.load(CALENDAR.events_key, [])
    if not isinstance(raw, list):
        log.warning("Ignoring non-list %s payload", CALENDAR.events_key)
        return []
    return _parse(raw)


def _is_planner_entry_on(item: Any, day_key: str) -> bool:
    if not isinstance(item, dict) or item.get("source") != CALENDAR.planner_source:
        return False
    return str(item.get("start") or "").split("T", 1)[0] == day_key


def sync(
    store: Store,
    blocks: Iterable[TimeBlock],
    day: DateLike,
    tasks: Iterable[Task],
) -> List[CalendarEvent]:
    """Replace the planner events of ``day`` with events for ``blocks``.

    Every other stored entry is kept byte for byte, including ones that do not
    parse. Returns the merged collection, or ``[]`` when the store fails.
    """

    key = _day_key(day)
    task_list = list(tasks)
    fresh = [to_event(block, key, task_list) for block in blocks]
    try:
        kept = [item for item in _stored(store) if not _is_planner_entry_on(item, key)]
        store.save(CALENDAR.events_key, kept + [e.model_dump(mode="json") for e in fresh])
    except StorageError as exc:
        log.error("Calendar sync for %s failed: %s", key, exc)
        return []
    log.info("Synced %d planner events for %s", len(fresh), key)
    return _parse(kept) + fresh


def events_for_day(store: Store, day: DateLike) -> List[CalendarEvent]:
    key = _day_key(day)
    return [e for e in load_events(store) if e.start_day == key]


def add_event(store: Store, event: CalendarEvent) -> List[CalendarEvent]:
    """Store a manually created event, overwriting one with the same id."""

    kept = [item for item in _stored(store) if _entry_id(item) != event.id]
    store.save(CALENDAR.events_key, kept + [event.model_dump(mode="json")])
    return _parse(kept) + [event]


def delete_event(store: Store, event_id: str) -> Optional[CalendarEvent]:
    stored = _stored(store)
    matches = _parse(item for item in stored if _entry_id(item) == event_id)
    if not matches:
        return None
    store.save(CALENDAR.events_key, [item for item in stored if _entry_id(item) != event_id])
    return matches[0]


__all__ = [
    "add_event",
    "delete_event",
    "event_description",
    "event_title",
    "events_for_day",
    "load_events",
    "sync",
    "to_event",
]
