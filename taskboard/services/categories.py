# taskboard/services/categories.py
from __future__ import annotations

import re
from typing import List, Optional

from taskboard.core.log import get_logger
from taskboard.models.category import Category
from taskboard.services.tasks import TaskService
from taskboard.storage.store import StorageError, Store, load_models, save_models

log = get_logger("categories")

CATEGORIES_KEY = "categories"

NAME_RE = re.compile(r"^.{1,40}$")
COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def load_categories(store: Store) -> List[Category]:
    return load_models(store, CATEGORIES_KEY, Category)


class CategoryService:
    def __init__(self, store: Store, tasks: Optional[TaskService] = None):
        self.store = store
        self.tasks = tasks or TaskService(store)

    def list(self) -> List[Category]:
        try:
            return load_categories(self.store)
        except StorageError as exc:
            log.error("Loading categories failed: %s", exc)
            return []

    def get(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.list() if c.id == category_id), None)

    def _save(self, categories: List[Category]) -> bool:
        try:
            save_models(self.store, CATEGORIES_KEY, Category, categories)
            return True
        except StorageError as exc:
            log.error("Saving categories failed: %s", exc)
            return False

    def add(self, name: str, color: str) -> Optional[Category]:
        name = (name or "").strip()
        self._validate_inputs(name, color)
        category = Category(name=name, color=color.upper())
        if not self._save(self.list() + [category]):
            return None
        return category

    def update(
        self,
        category_id: str,
        *,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Optional[Category]:
        changes = {}
        if name is not None:
            name = name.strip()
            self._validate_name(name)
            changes["name"] = name
        if color is not None:
            self._validate_color(color)
            changes["color"] = color.upper()

        categories = self.list()
        updated: Optional[Category] = None
        result: List[Category] = []
        for category in categories:
            if category.id == category_id:
                category = updated = category.model_copy(update=changes)
            result.append(category)
        if updated is None or not self._save(result):
            return None
        return updated

    def delete(self, category_id: str) -> bool:
        """Remove the category and its id from every task; tasks are kept."""

        categories = self.list()
        remaining = [c for c in categories if c.id != category_id]
        if len(remaining) == len(categories):
            return False
        if not self._save(remaining):
            return False
        changed = self.tasks.remove_category(category_id)
        log.info("Category %s removed from %d tasks", category_id, changed)
        return True

    # ------------------------------------------------------------------
    def _validate_inputs(self, name: str, color: str) -> None:
        self._validate_name(name)
        self._validate_color(color)

    def _validate_name(self, name: str) -> None:
        if not NAME_RE.match(name):
            raise ValueError("Category name must be between 1 and 40 characters")

    def _validate_color(self, color: str) -> None:
        if not COLOR_RE.match(color or ""):
            raise ValueError("Color must be in #RRGGBB format")


__all__ = ["CategoryService", "CATEGORIES_KEY", "load_categories"]
