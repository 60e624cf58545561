"""JSON export / import of the task, category and project collections."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import ValidationError

from taskboard.core.log import get_logger
from taskboard.core.settings import EXPORT_VERSION
from taskboard.helpers.datetime_utils import to_rfc3339_utc, utc_now
from taskboard.models.category import Category
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.services.categories import CATEGORIES_KEY
from taskboard.services.projects import PROJECTS_KEY
from taskboard.services.tasks import TASKS_KEY
from taskboard.storage.store import StorageError, Store

log = get_logger("transfer")

COLLECTIONS = {
    TASKS_KEY: Task,
    CATEGORIES_KEY: Category,
    PROJECTS_KEY: Project,
}

IMPORT_FAILED = "Failed to import data. The file may be corrupted or have an invalid format."


class DataImportError(ValueError):
    """Raised when an import document is rejected; stored data is untouched."""


def export_data(store: Store, now: Optional[datetime] = None) -> str:
    payload: Dict[str, object] = {}
    for key in COLLECTIONS:
        value = store.load(key, [])
        payload[key] = value if isinstance(value, list) else []
    payload["exportDate"] = to_rfc3339_utc(now or utc_now())
    payload["version"] = EXPORT_VERSION
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _validate(document: object) -> Dict[str, List[dict]]:
    if not isinstance(document, dict):
        raise DataImportError(IMPORT_FAILED)
    validated: Dict[str, List[dict]] = {}
    for key, model in COLLECTIONS.items():
        items = document.get(key)
        if not isinstance(items, list):
            log.warning("Import rejected: %s missing or not a list", key)
            raise DataImportError(IMPORT_FAILED)
        try:
            validated[key] = [model.model_validate(item).model_dump(mode="json") for item in items]
        except ValidationError as exc:
            log.warning("Import rejected: invalid %s entry: %s", key, exc)
            raise DataImportError(IMPORT_FAILED) from exc
    return validated


def _restore(store: Store, previous: Dict[str, object]) -> None:
    for key, value in previous.items():
        try:
            if value is None:
                store.delete(key)
            else:
                store.save(key, value)
        except StorageError as exc:
            log.error("Restoring %s failed: %s", key, exc)


def import_data(store: Store, text: str) -> Dict[str, List[dict]]:
    """Replace tasks, categories and projects with the document's collections.

    Nothing is written unless all three collections validate.
    """

    try:
        document = json.loads(text)
    except (TypeError, json.JSONDecodeError) as exc:
        log.warning("Import rejected: not JSON (%s)", exc)
        raise DataImportError(IMPORT_FAILED) from exc

    validated = _validate(document)
    try:
        previous = {key: store.load(key) for key in COLLECTIONS}
    except StorageError as exc:
        log.error("Import aborted, current data unreadable: %s", exc)
        raise DataImportError(IMPORT_FAILED) from exc
    try:
        for key, items in validated.items():
            store.save(key, items)
    except StorageError as exc:
        log.error("Import write failed, restoring previous data: %s", exc)
        _restore(store, previous)
        raise DataImportError(IMPORT_FAILED) from exc
    log.info(
        "Imported %d tasks, %d categories, %d projects",
        len(validated[TASKS_KEY]),
        len(validated[CATEGORIES_KEY]),
        len(validated[PROJECTS_KEY]),
    )
    return validated


def clear_all_data(store: Store) -> None:
    for key in COLLECTIONS:
        store.delete(key)


__all__ = ["DataImportError", "clear_all_data", "export_data", "import_data"]
