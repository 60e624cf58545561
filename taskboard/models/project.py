# taskboard/models/project.py
from __future__ import annotations

from typing import List, Optional

from sqlmodel import Field, SQLModel

from taskboard.models.task import new_id


class Project(SQLModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[str] = None
    categories: List[str] = Field(default_factory=list)


__all__ = ["Project"]
