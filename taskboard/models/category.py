# taskboard/models/category.py
from __future__ import annotations

from sqlmodel import Field, SQLModel

from taskboard.models.task import new_id


class Category(SQLModel):
    id: str = Field(default_factory=new_id)
    name: str
    color: str


__all__ = ["Category"]
