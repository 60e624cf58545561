# taskboard/models/calendar_event.py
from __future__ import annotations

from typing import Optional

from sqlmodel import SQLModel


class CalendarEvent(SQLModel):
    id: str
    title: str
    start: str                    # YYYY-MM-DDTHH:MM:SS
    end: str
    description: str = ""
    source: Optional[str] = None  # "planner" for time-block events
    color: Optional[str] = None
    is_flexible: bool = False

    @property
    def start_day(self) -> str:
        return self.start.split("T", 1)[0]


__all__ = ["CalendarEvent"]
