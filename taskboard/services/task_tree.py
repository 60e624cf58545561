# taskboard/services/task_tree.py
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

from taskboard.models.task import Task


class TaskIndex:
    """id -> task and parent -> children lookups built once per evaluation pass."""

    def __init__(self, tasks: Iterable[Task]):
        self.tasks: List[Task] = list(tasks)
        self.by_id: Dict[str, Task] = {t.id: t for t in self.tasks}
        self._children: Dict[str, List[Task]] = {}
        for task in self.tasks:
            if task.parent_id:
                self._children.setdefault(task.parent_id, []).append(task)

    def get(self, task_id: Optional[str]) -> Optional[Task]:
        if not task_id:
            return None
        return self.by_id.get(task_id)

    def children(self, task_id: str) -> List[Task]:
        return self._children.get(task_id, [])

    def has_children(self, task_id: str) -> bool:
        return bool(self._children.get(task_id))

    def completed_ratio(self, task_id: str) -> float:
        kids = self.children(task_id)
        if not kids:
            return 0.0
        done = sum(1 for k in kids if k.is_completed)
        return done / len(kids)

    def ancestors(self, task: Task) -> List[Task]:
        """Parent chain, root first. Dangling references and cycles stop the walk."""

        chain: List[Task] = []
        seen: Set[str] = {task.id}
        current = self.get(task.parent_id)
        while current is not None and current.id not in seen:
            chain.append(current)
            seen.add(current.id)
            current = self.get(current.parent_id)
        chain.reverse()
        return chain

    def path_titles(self, task: Task) -> List[str]:
        return [t.title for t in self.ancestors(task)]

    def descendant_ids(self, task_id: str) -> Set[str]:
        found: Set[str] = set()
        stack = [task_id]
        while stack:
            current = stack.pop()
            for child in self.children(current):
                if child.id not in found and child.id != task_id:
                    found.add(child.id)
                    stack.append(child.id)
        return found


__all__ = ["TaskIndex"]
