# taskboard/services/projects.py
from __future__ import annotations

from typing import List, Optional

from taskboard.core.log import get_logger
from taskboard.core.priorities import normalize_priority
from taskboard.models.project import Project
from taskboard.services.tasks import TaskService
from taskboard.storage.store import StorageError, Store, load_models, save_models

log = get_logger("projects")

PROJECTS_KEY = "projects"

EDITABLE_FIELDS = {"name", "description", "color", "priority", "status", "due_date", "categories"}


def load_projects(store: Store) -> List[Project]:
    return load_models(store, PROJECTS_KEY, Project)


class ProjectService:
    def __init__(self, store: Store, tasks: Optional[TaskService] = None):
        self.store = store
        self.tasks = tasks or TaskService(store)

    def list(self) -> List[Project]:
        try:
            return load_projects(self.store)
        except StorageError as exc:
            log.error("Loading projects failed: %s", exc)
            return []

    def get(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.list() if p.id == project_id), None)

    def _save(self, projects: List[Project]) -> bool:
        try:
            save_models(self.store, PROJECTS_KEY, Project, projects)
            return True
        except StorageError as exc:
            log.error("Saving projects failed: %s", exc)
            return False

    def add(self, name: str, description: Optional[str] = None, **extra) -> Optional[Project]:
        name = (name or "").strip()
        if not name:
            raise ValueError("Project name cannot be empty")
        unknown = set(extra) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported project fields: {', '.join(sorted(unknown))}")
        if "priority" in extra:
            extra["priority"] = normalize_priority(extra["priority"])
        project = Project(name=name, description=description or None, **extra)
        if not self._save(self.list() + [project]):
            return None
        return project

    def update(self, project_id: str, **fields) -> Optional[Project]:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported project fields: {', '.join(sorted(unknown))}")
        if "name" in fields:
            fields["name"] = (fields["name"] or "").strip()
            if not fields["name"]:
                raise ValueError("Project name cannot be empty")
        if "priority" in fields:
            fields["priority"] = normalize_priority(fields["priority"])

        updated: Optional[Project] = None
        result: List[Project] = []
        for project in self.list():
            if project.id == project_id:
                project = updated = project.model_copy(update=fields)
            result.append(project)
        if updated is None or not self._save(result):
            return None
        return updated

    def delete(self, project_id: str) -> bool:
        """Remove the project and clear ``project_id`` on its tasks."""

        projects = self.list()
        remaining = [p for p in projects if p.id != project_id]
        if len(remaining) == len(projects):
            return False
        if not self._save(remaining):
            return False
        changed = self.tasks.clear_project(project_id)
        log.info("Project %s detached from %d tasks", project_id, changed)
        return True


__all__ = ["ProjectService", "PROJECTS_KEY", "load_projects"]
