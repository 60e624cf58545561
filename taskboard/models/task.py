# taskboard/models/task.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlmodel import Field, SQLModel

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

# where a task can be done
CONTEXTS = ("phone-call", "errand", "online", "home", "work", "anywhere")


def new_id() -> str:
    return uuid.uuid4().hex


class TimerState(SQLModel):
    """Focus timer bookkeeping attached to a task."""

    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    actual_minutes: Optional[int] = None


class Task(SQLModel):
    id: str = Field(default_factory=new_id)
    title: str
    # ``YYYY-MM-DD`` / ``HH:MM`` strings; parsed fail-open by the consumers
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    status: str = STATUS_PENDING          # pending / completed
    parent_id: Optional[str] = None
    priority: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    project_id: Optional[str] = None
    estimated_minutes: Optional[int] = None
    context: Optional[str] = None        # one of CONTEXTS
    timer: Optional[TimerState] = None

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def is_subtask(self) -> bool:
        return bool(self.parent_id)


__all__ = ["CONTEXTS", "Task", "TimerState", "STATUS_PENDING", "STATUS_COMPLETED", "new_id"]
