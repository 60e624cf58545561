"""Domain models exposed by Taskboard."""
from .task import Task, TimerState
from .time_block import TimeBlock
from .calendar_event import CalendarEvent
from .category import Category
from .project import Project
from .suggestion import Suggestion

__all__ = [
    "CalendarEvent",
    "Category",
    "Project",
    "Suggestion",
    "Task",
    "TimeBlock",
    "TimerState",
]
