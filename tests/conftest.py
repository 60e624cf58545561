import os
import tempfile
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# keep logs and databases out of the real user data dir
os.environ.setdefault("TASKBOARD_DATA_DIR", tempfile.mkdtemp(prefix="taskboard-tests-"))

import pytest
from sqlmodel import Session, SQLModel, create_engine

from taskboard.storage.store import KeyValueStore, MemoryStore, StorageError


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    def factory():
        return Session(engine)

    return factory


@pytest.fixture()
def sql_store(session_factory):
    return KeyValueStore(session_factory)


class FailingStore(MemoryStore):
    """MemoryStore whose reads and/or writes raise :class:`StorageError`."""

    def __init__(self, *, fail_load=False, fail_save=True, initial=None):
        self.fail_load = False
        self.fail_save = False
        super().__init__(initial)
        self.fail_load = fail_load
        self.fail_save = fail_save

    def load(self, key, default=None):
        if self.fail_load:
            raise StorageError(f"cannot read {key}")
        return super().load(key, default)

    def save(self, key, value):
        if self.fail_save:
            raise StorageError(f"cannot write {key}")
        super().save(key, value)


@pytest.fixture()
def failing_store_cls():
    return FailingStore

