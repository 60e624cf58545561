"""Shared utilities for parsing and normalizing date/time input.

Every parser here is fail-open: malformed or missing input yields ``None``
(or ``False`` for the predicates) instead of raising, so a bad value stored on
one task never breaks evaluation of the others.
"""
from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import Optional, Union

UTC = timezone.utc

DateLike = Union[str, date, datetime, None]


def to_local_naive(dt: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""

    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def _parse_iso_datetime(text: str) -> Optional[datetime]:
    value = text
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_date_input(value: DateLike) -> Optional[date]:
    """Parse ISO ``YYYY-MM-DD`` (optionally with a time part) or ``DD.MM.YYYY``.

    ``date`` and ``datetime`` objects are accepted as-is; aware datetimes are
    converted to local time before the day is taken.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_naive(value).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in ("%Y-%m-%d", "%d.%m.%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    parsed = _parse_iso_datetime(text)
    if parsed is None:
        return None
    return to_local_naive(parsed).date()


def parse_time_input(value: Union[str, time, None]) -> Optional[time]:
    """Parse ``HH:MM`` (or ``HH:MM:SS`` / ``HH.MM``) into a ``time``."""

    if value is None:
        return None
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in ("%H:%M", "%H:%M:%S", "%H.%M"):
        try:
            dt = datetime.strptime(text, fmt)
            return time(dt.hour, dt.minute, dt.second)
        except ValueError:
            continue
    return None


def normalize_day(value: DateLike) -> Optional[date]:
    """Return the local calendar day of ``value`` (midnight boundary)."""

    return parse_date_input(value)


def is_before(date_like: DateLike, reference: DateLike) -> bool:
    """True iff the day of ``date_like`` is strictly before the day of ``reference``."""

    task_day = normalize_day(date_like)
    ref_day = normalize_day(reference)
    if task_day is None or ref_day is None:
        return False
    return task_day < ref_day


def is_between(date_like: DateLike, start: DateLike, end_exclusive: DateLike) -> bool:
    """True iff ``start <= day(date_like) < end_exclusive`` (half-open window)."""

    task_day = normalize_day(date_like)
    start_day = normalize_day(start)
    end_day = normalize_day(end_exclusive)
    if task_day is None or start_day is None or end_day is None:
        return False
    return start_day <= task_day < end_day


def combine_due(due_date: DateLike, due_time: Union[str, time, None]) -> Optional[datetime]:
    """Combine a due date and due time into a naive local instant.

    A time without a date is meaningless and yields ``None``, as does an
    unparseable time.
    """

    day = parse_date_input(due_date)
    if day is None:
        return None
    moment = parse_time_input(due_time)
    if moment is None:
        return None
    return datetime.combine(day, moment)


def exact_minutes_until(target: datetime, now: datetime) -> float:
    """Signed fractional minutes from ``now`` to ``target``."""

    delta = to_local_naive(target) - to_local_naive(now)
    return delta.total_seconds() / 60


def minutes_until(target: datetime, now: datetime) -> int:
    """Signed whole minutes from ``now`` to ``target``, rounded half up."""

    return int(math.floor(exact_minutes_until(target, now) + 0.5))


def date_key(day: DateLike) -> Optional[str]:
    parsed = parse_date_input(day)
    return parsed.isoformat() if parsed else None


def format_clock(value: Union[time, datetime]) -> str:
    return value.strftime("%H:%M")


def format_day(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def format_12h(value: Union[str, time, None]) -> str:
    """``13:05`` -> ``1:05 PM``; unparseable input is returned unchanged."""

    parsed = parse_time_input(value)
    if parsed is None:
        return str(value or "")
    period = "PM" if parsed.hour >= 12 else "AM"
    hours = parsed.hour % 12 or 12
    return f"{hours}:{parsed.minute:02d} {period}"


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_rfc3339_utc(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to RFC3339 in UTC with second precision."""

    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt.replace(microsecond=0).isoformat().replace("+00:00", "Z")


__all__ = [
    "UTC",
    "combine_due",
    "date_key",
    "exact_minutes_until",
    "format_12h",
    "format_clock",
    "format_day",
    "is_before",
    "is_between",
    "minutes_until",
    "normalize_day",
    "parse_date_input",
    "parse_time_input",
    "to_local_naive",
    "to_rfc3339_utc",
    "utc_now",
]
