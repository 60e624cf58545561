"""Key-value persistence port for whole JSON collections.

Collections (``tasks``, ``categories``, ``projects``, ``timeBlocks_<date>``,
``calendar_events``) are always read and written whole; there is no partial
update. Payloads are serialized with sorted keys so equal values produce equal
bytes.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, SQLModel, Session, select

from taskboard.core.log import get_logger

log = get_logger("storage")

M = TypeVar("M", bound=BaseModel)


class StorageError(RuntimeError):
    """Raised when the backing store cannot be read or written."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KVEntry(SQLModel, table=True):
    key: str = Field(primary_key=True)
    value_json: str
    updated_at: datetime = Field(default_factory=_utcnow)


def _encode(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, default=_encode)


def _loads(key: str, payload: Optional[str], default: Any) -> Any:
    if payload is None:
        return default
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        log.warning("Discarding corrupt payload stored under %s", key)
        return default


class Store(Protocol):
    def load(self, key: str, default: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> List[str]: ...


class KeyValueStore:
    """SQLite-backed store; one ``kventry`` row per key."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from taskboard.storage.db import get_session, init_db

            init_db()
            session_factory = get_session
        self._session_factory = session_factory

    def load(self, key: str, default: Any = None) -> Any:
        try:
            with self._session_factory() as session:
                row = session.get(KVEntry, key)
                payload = row.value_json if row else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc
        return _loads(key, payload, default)

    def save(self, key: str, value: Any) -> None:
        payload = dumps(value)
        try:
            with self._session_factory() as session:
                row = session.get(KVEntry, key)
                if row is None:
                    row = KVEntry(key=key, value_json=payload)
                else:
                    row.value_json = payload
                    row.updated_at = _utcnow()
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                row = session.get(KVEntry, key)
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc

    def keys(self, prefix: str = "") -> List[str]:
        try:
            with self._session_factory() as session:
                stmt = select(KVEntry.key).order_by(KVEntry.key.asc())
                return [k for k in session.exec(stmt) if k.startswith(prefix)]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list keys: {exc}") from exc


class MemoryStore:
    """Dict-backed store holding the serialized payloads."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str, default: Any = None) -> Any:
        return _loads(key, self._data.get(key), default)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def raw(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


def _split(raw: List[Any], model: Type[M]) -> Tuple[List[M], List[Any]]:
    valid: List[M] = []
    rest: List[Any] = []
    for item in raw:
        try:
            valid.append(model.model_validate(item))
        except ValidationError:
            rest.append(item)
    return valid, rest


def load_models(store: Store, key: str, model: Type[M]) -> List[M]:
    """Read collection ``key``; entries ``model`` cannot validate are skipped."""

    raw = store.load(key, [])
    if not isinstance(raw, list):
        log.warning("Ignoring non-list %s payload", key)
        return []
    valid, rest = _split(raw, model)
    for item in rest:
        log.warning("Skipping malformed %s entry: %r", key, item)
    return valid


def save_models(store: Store, key: str, model: Type[M], items: Iterable[M]) -> None:
    """Write ``items`` as collection ``key``.

    Stored entries that ``model`` cannot validate are appended back unchanged,
    and a payload that is not a list is never overwritten.
    """

    raw = store.load(key, None)
    if raw is not None and not isinstance(raw, list):
        raise StorageError(f"Refusing to overwrite non-list {key} payload")
    kept = _split(raw, model)[1] if raw else []
    if kept:
        log.warning("Keeping %d unreadable %s entries", len(kept), key)
    store.save(key, [i.model_dump(mode="json") for i in items] + kept)


__all__ = [
    "KVEntry",
    "KeyValueStore",
    "MemoryStore",
    "Store",
    "StorageError",
    "dumps",
    "load_models",
    "save_models",
]
