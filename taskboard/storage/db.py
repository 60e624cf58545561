# taskboard/storage/db.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from sqlmodel import SQLModel, Session, create_engine

from taskboard.core.settings import DB_PATH

# Ensure SQLModel metadata is populated
import taskboard.storage.store  # noqa: F401


_engine = None


def get_engine(path: Optional[Path] = None):
    """Return (and lazily create) the engine for ``taskboard.db``."""

    global _engine
    if path is not None:
        return create_engine(f"sqlite:///{Path(path).as_posix()}", echo=False)
    if _engine is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(f"sqlite:///{DB_PATH.as_posix()}", echo=False)
    return _engine


def init_db(engine=None):
    SQLModel.metadata.create_all(engine or get_engine())


def get_session() -> Session:
    return Session(get_engine())


__all__ = ["get_engine", "get_session", "init_db"]
