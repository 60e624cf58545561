# taskboard/services/tasks.py
from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

from taskboard.core.log import get_logger
from taskboard.core.priorities import normalize_priority
from taskboard.helpers.datetime_utils import parse_date_input, to_rfc3339_utc, utc_now
from taskboard.models.task import CONTEXTS, STATUS_COMPLETED, STATUS_PENDING, Task, TimerState
from taskboard.services.task_tree import TaskIndex
from taskboard.storage.store import StorageError, Store, load_models, save_models

log = get_logger("tasks")

TASKS_KEY = "tasks"

EDITABLE_FIELDS = {
    "title",
    "due_date",
    "due_time",
    "status",
    "parent_id",
    "priority",
    "categories",
    "project_id",
    "estimated_minutes",
    "context",
}


def load_tasks(store: Store) -> List[Task]:
    """Read the task collection, skipping entries that fail validation."""

    return load_models(store, TASKS_KEY, Task)


def _aware(dt: datetime) -> datetime:
    """Naive datetimes are local time."""
    return dt if dt.tzinfo is not None else dt.astimezone()


def save_tasks(store: Store, tasks: Iterable[Task]) -> None:
    """Replace the task collection; unreadable stored entries are kept."""

    save_models(store, TASKS_KEY, Task, tasks)


class TaskService:
    """Task collection kept whole in the store; every change replaces the list."""

    EVENTS = ("after_create", "after_update", "after_delete")

    def __init__(self, store: Store):
        self.store = store
        self._listeners: Dict[str, Set[Callable[[str], None]]] = {e: set() for e in self.EVENTS}

    # ---------- events ----------
    def subscribe(self, event: str, callback: Callable[[str], None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unsupported event: {event}")
        self._listeners[event].add(callback)

    def unsubscribe(self, event: str, callback: Callable[[str], None]) -> None:
        if event not in self._listeners:
            return
        self._listeners[event].discard(callback)

    def _emit(self, event: str, task_id: str) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(task_id)
            except Exception:
                log.exception("Listener for %s failed on task %s", event, task_id)

    # ---------- storage ----------
    def _read(self) -> Optional[List[Task]]:
        try:
            return load_tasks(self.store)
        except StorageError as exc:
            log.error("Loading tasks failed: %s", exc)
            return None

    def _write(self, tasks: List[Task]) -> bool:
        try:
            save_tasks(self.store, tasks)
            return True
        except StorageError as exc:
            log.error("Saving tasks failed: %s", exc)
            return False

    def list(self) -> List[Task]:
        return self._read() or []

    def get(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.list() if t.id == task_id), None)

    # ---------- CRUD ----------
    def add(
        self,
        title: str,
        *,
        due_date: Optional[str] = None,
        due_time: Optional[str] = None,
        categories: Optional[List[str]] = None,
        project_id: Optional[str] = None,
        priority: Optional[str] = None,
        estimated_minutes: Optional[int] = None,
        parent_id: Optional[str] = None,
        context: Optional[str] = None,
        emit: bool = True,
    ) -> Optional[Task]:
        cleaned = (title or "").strip()
        if not cleaned:
            raise ValueError("Task title cannot be empty")
        if due_date is not None and parse_date_input(due_date) is None:
            raise ValueError(f"Invalid due date: {due_date!r}")
        if context is not None and context not in CONTEXTS:
            raise ValueError(f"Unsupported context: {context}")

        tasks = self._read()
        if tasks is None:
            return None
        task = Task(
            title=cleaned,
            due_date=due_date or None,
            due_time=due_time or None,
            categories=list(categories or []),
            project_id=project_id or None,
            priority=normalize_priority(priority),
            estimated_minutes=estimated_minutes or None,
            parent_id=parent_id or None,
            context=context,
        )
        if not self._write(tasks + [task]):
            return None
        if emit:
            self._emit("after_create", task.id)
        return task

    def _replace(self, task_id: str, changer: Callable[[Task], Task], *, emit: bool = True) -> Optional[Task]:
        tasks = self._read()
        if tasks is None:
            return None
        updated: Optional[Task] = None
        result: List[Task] = []
        for task in tasks:
            if task.id == task_id:
                updated = changer(task)
                result.append(updated)
            else:
                result.append(task)
        if updated is None:
            return None
        if not self._write(result):
            return None
        if emit:
            self._emit("after_update", task_id)
        return updated

    def update(self, task_id: str, *, emit: bool = True, **fields) -> Optional[Task]:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {', '.join(sorted(unknown))}")
        if "title" in fields:
            fields["title"] = (fields["title"] or "").strip()
            if not fields["title"]:
                raise ValueError("Task title cannot be empty")
        if "priority" in fields:
            fields["priority"] = normalize_priority(fields["priority"])
        if "status" in fields and fields["status"] not in (STATUS_PENDING, STATUS_COMPLETED):
            raise ValueError(f"Unsupported status: {fields['status']}")
        if fields.get("context") is not None and fields["context"] not in CONTEXTS:
            raise ValueError(f"Unsupported context: {fields['context']}")
        return self._replace(task_id, lambda t: t.model_copy(update=fields), emit=emit)

    def toggle(self, task_id: str) -> Optional[Task]:
        def _flip(task: Task) -> Task:
            status = STATUS_PENDING if task.is_completed else STATUS_COMPLETED
            return task.model_copy(update={"status": status})

        return self._replace(task_id, _flip)

    def set_priority(self, task_id: str, priority: Optional[str]) -> Optional[Task]:
        return self.update(task_id, priority=priority)

    def set_context(self, task_id: str, context: Optional[str]) -> Optional[Task]:
        """Tag where the task can be done; ``None`` clears the tag."""
        return self.update(task_id, context=context)

    def set_estimate(self, task_id: str, minutes: Optional[int]) -> Optional[Task]:
        if minutes is not None and minutes < 0:
            raise ValueError("Estimate cannot be negative")
        return self.update(task_id, estimated_minutes=minutes)

    def delete(self, task_id: str, *, emit: bool = True) -> List[str]:
        """Delete ``task_id`` together with its whole subtree; returns removed ids."""

        tasks = self._read()
        if tasks is None:
            return []
        index = TaskIndex(tasks)
        if index.get(task_id) is None:
            return []
        doomed = {task_id} | index.descendant_ids(task_id)
        if not self._write([t for t in tasks if t.id not in doomed]):
            return []
        if emit:
            for removed in sorted(doomed):
                self._emit("after_delete", removed)
        return sorted(doomed)

    def add_subtask(self, parent_id: str, title: str) -> Optional[Task]:
        """Create a child task inheriting due date, project, categories and priority."""

        parent = self.get(parent_id)
        if parent is None:
            log.error("Parent task %s not found", parent_id)
            return None
        return self.add(
            title,
            due_date=parent.due_date,
            categories=list(parent.categories),
            project_id=parent.project_id,
            priority=parent.priority,
            parent_id=parent.id,
        )

    def subtasks(self, parent_id: str) -> List[Task]:
        return TaskIndex(self.list()).children(parent_id)

    # ---------- focus timer ----------
    def start_timer(self, task_id: str, now: Optional[datetime] = None) -> Optional[Task]:
        started = to_rfc3339_utc(_aware(now or utc_now()))
        return self._replace(
            task_id,
            lambda t: t.model_copy(update={"timer": TimerState(started_at=started)}),
        )

    def stop_timer(self, task_id: str, now: Optional[datetime] = None) -> Optional[Task]:
        """Record completion time and the elapsed whole minutes of a running timer."""

        finished_at = _aware(now or utc_now())

        def _stop(task: Task) -> Task:
            timer = task.timer or TimerState()
            actual = timer.actual_minutes
            if timer.started_at:
                started = datetime.fromisoformat(timer.started_at.replace("Z", "+00:00"))
                actual = max(int((finished_at - started).total_seconds() // 60), 0)
            stopped = TimerState(
                started_at=timer.started_at,
                completed_at=to_rfc3339_utc(finished_at),
                actual_minutes=actual,
            )
            return task.model_copy(update={"timer": stopped})

        return self._replace(task_id, _stop)

    # ---------- reference cascades ----------
    def remove_category(self, category_id: str) -> int:
        """Drop ``category_id`` from every task; returns how many tasks changed."""

        tasks = self._read()
        if tasks is None:
            return 0
        changed = 0
        result: List[Task] = []
        for task in tasks:
            if category_id in task.categories:
                remaining = [c for c in task.categories if c != category_id]
                task = task.model_copy(update={"categories": remaining})
                changed += 1
            result.append(task)
        if changed and not self._write(result):
            return 0
        return changed

    def clear_project(self, project_id: str) -> int:
        tasks = self._read()
        if tasks is None:
            return 0
        changed = 0
        result: List[Task] = []
        for task in tasks:
            if task.project_id == project_id:
                task = task.model_copy(update={"project_id": None})
                changed += 1
            result.append(task)
        if changed and not self._write(result):
            return 0
        return changed


__all__ = ["TaskService", "TASKS_KEY", "load_tasks", "save_tasks"]
