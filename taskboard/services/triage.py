"""'What should I work on now?' selector.

A pure pipeline over the pending tasks: time filter, energy filter, blocker
adjustment, then the first few survivors. When nothing survives, generic
advice is returned as :class:`Suggestion` placeholders instead.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from taskboard.core.settings import TRIAGE, TriageSettings
from taskboard.models.suggestion import Suggestion
from taskboard.models.task import STATUS_PENDING, Task
from taskboard.services.task_tree import TaskIndex

ENERGY_LOW = "low"
ENERGY_MEDIUM = "medium"
ENERGY_HIGH = "high"

BLOCKER_TOO_MANY_CHOICES = "too many choices"
BLOCKER_DECISION_FATIGUE = "decision fatigue"
BLOCKER_QUICK_WIN = "need a quick win"

Recommendation = Union[Task, Suggestion]


@dataclass(frozen=True)
class TriageCriteria:
    time_minutes: int
    energy: str = ENERGY_MEDIUM
    blocker: Optional[str] = None

    @property
    def energy_level(self) -> str:
        return (self.energy or "").strip().lower()

    @property
    def blocker_key(self) -> str:
        return (self.blocker or "").strip().lower()


def _is_light(task: Task, index: TaskIndex) -> bool:
    """Subtask or task without children."""
    return task.is_subtask or not index.has_children(task.id)


def _filter_time(tasks: List[Task], minutes: int, index: TaskIndex, cfg: TriageSettings) -> List[Task]:
    if minutes <= cfg.quick_time_minutes:
        return [
            t
            for t in tasks
            if _is_light(t, index) or index.completed_ratio(t.id) > cfg.nearly_done_ratio
        ]
    if minutes <= cfg.short_time_minutes:
        return [t for t in tasks if len(index.children(t.id)) <= cfg.short_max_subtasks]
    return tasks


def _filter_energy(
    tasks: List[Task], level: str, pending: List[Task], index: TaskIndex
) -> List[Task]:
    if level == ENERGY_LOW:
        return [t for t in tasks if _is_light(t, index)]
    if level == ENERGY_HIGH:
        parents = [t for t in tasks if index.has_children(t.id)]
        return parents or list(pending)
    return tasks


def _apply_blocker(tasks: List[Task], blocker: str, index: TaskIndex, cfg: TriageSettings) -> List[Task]:
    if blocker == BLOCKER_TOO_MANY_CHOICES:
        # sorted() is stable: top-level tasks keep their order ahead of subtasks
        return sorted(tasks, key=lambda t: 1 if t.is_subtask else 0)
    if blocker == BLOCKER_DECISION_FATIGUE:
        return tasks[: cfg.max_results]
    if blocker == BLOCKER_QUICK_WIN:
        return [t for t in tasks if _is_light(t, index)]
    return tasks


def placeholders(titles: Sequence[str], limit: int) -> List[Suggestion]:
    return [Suggestion(title=title) for title in list(titles)[:limit]]


def recommend(
    criteria: TriageCriteria,
    tasks: Iterable[Task],
    fallback: Optional[Sequence[str]] = None,
    *,
    settings: TriageSettings = TRIAGE,
) -> List[Recommendation]:
    """Return at most ``settings.max_results`` recommendations for ``criteria``."""

    index = TaskIndex(tasks)
    pending = [t for t in index.tasks if t.status == STATUS_PENDING]

    selected = _filter_time(pending, criteria.time_minutes, index, settings)
    selected = _filter_energy(selected, criteria.energy_level, pending, index)
    selected = _apply_blocker(selected, criteria.blocker_key, index, settings)

    if not selected:
        titles = fallback if fallback else settings.default_suggestions
        return list(placeholders(titles, settings.max_results))
    return list(selected[: settings.max_results])


__all__ = [
    "BLOCKER_DECISION_FATIGUE",
    "BLOCKER_QUICK_WIN",
    "BLOCKER_TOO_MANY_CHOICES",
    "ENERGY_HIGH",
    "ENERGY_LOW",
    "ENERGY_MEDIUM",
    "Recommendation",
    "TriageCriteria",
    "placeholders",
    "recommend",
]
