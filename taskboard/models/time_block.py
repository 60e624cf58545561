# taskboard/models/time_block.py
from __future__ import annotations

from typing import List, Optional

from sqlmodel import Field, SQLModel

from taskboard.models.task import new_id


class TimeBlock(SQLModel):
    """A planned slot on one calendar day; stored under ``timeBlocks_<date>``."""

    id: str = Field(default_factory=new_id)
    start_time: str               # HH:MM, 24h
    end_time: str                 # HH:MM, 24h; >= start_time is up to the caller
    title: str = ""
    task_ids: List[str] = Field(default_factory=list)
    color: Optional[str] = None


__all__ = ["TimeBlock"]
