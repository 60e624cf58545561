# taskboard/services/time_blocks.py
from __future__ import annotations

from typing import List, Optional

from taskboard.core.log import get_logger
from taskboard.core.settings import CALENDAR
from taskboard.helpers.datetime_utils import DateLike, date_key, parse_time_input
from taskboard.models.time_block import TimeBlock
from taskboard.storage.store import StorageError, Store, load_models, save_models

log = get_logger("planner")

EDITABLE_FIELDS = {"start_time", "end_time", "title", "task_ids", "color"}


def blocks_key(day: DateLike) -> str:
    key = date_key(day)
    if key is None:
        raise ValueError(f"Invalid calendar date: {day!r}")
    return f"{CALENDAR.time_blocks_key_prefix}{key}"


def _check_clock(value: str, field: str) -> str:
    parsed = parse_time_input(value)
    if parsed is None:
        raise ValueError(f"{field} must be HH:MM, got {value!r}")
    return parsed.strftime("%H:%M")


class TimeBlockService:
    """Per-day time blocks stored under ``timeBlocks_<YYYY-MM-DD>``."""

    def __init__(self, store: Store):
        self.store = store

    def list(self, day: DateLike) -> List[TimeBlock]:
        key = blocks_key(day)
        try:
            return load_models(self.store, key, TimeBlock)
        except StorageError as exc:
            log.error("Loading %s failed: %s", key, exc)
            return []

    def days(self) -> List[str]:
        """Dates with stored time blocks, oldest first."""

        prefix = CALENDAR.time_blocks_key_prefix
        try:
            keys = self.store.keys(prefix)
        except StorageError as exc:
            log.error("Listing planned days failed: %s", exc)
            return []
        return [key[len(prefix):] for key in keys]

    def _save(self, day: DateLike, blocks: List[TimeBlock]) -> bool:
        key = blocks_key(day)
        try:
            save_models(self.store, key, TimeBlock, blocks)
            return True
        except StorageError as exc:
            log.error("Saving %s failed: %s", key, exc)
            return False

    def add(
        self,
        day: DateLike,
        *,
        start_time: str,
        end_time: str,
        title: str = "",
        task_ids: Optional[List[str]] = None,
        color: Optional[str] = None,
    ) -> Optional[TimeBlock]:
        block = TimeBlock(
            start_time=_check_clock(start_time, "start_time"),
            end_time=_check_clock(end_time, "end_time"),
            title=(title or "").strip(),
            task_ids=list(task_ids or []),
            color=color or None,
        )
        if not self._save(day, self.list(day) + [block]):
            return None
        return block

    def update(self, day: DateLike, block_id: str, **fields) -> Optional[TimeBlock]:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported time block fields: {', '.join(sorted(unknown))}")
        for name in ("start_time", "end_time"):
            if name in fields:
                fields[name] = _check_clock(fields[name], name)

        updated: Optional[TimeBlock] = None
        result: List[TimeBlock] = []
        for block in self.list(day):
            if block.id == block_id:
                block = updated = block.model_copy(update=fields)
            result.append(block)
        if updated is None or not self._save(day, result):
            return None
        return updated

    def delete(self, day: DateLike, block_id: str) -> bool:
        """Remove the block; assigned tasks are untouched."""

        blocks = self.list(day)
        remaining = [b for b in blocks if b.id != block_id]
        if len(remaining) == len(blocks):
            return False
        return self._save(day, remaining)

    def assign_task(self, day: DateLike, task_id: str, block_id: Optional[str]) -> List[TimeBlock]:
        """Move ``task_id`` into ``block_id`` (or out of every block when ``None``)."""

        blocks = self.list(day)
        if block_id is not None and not any(b.id == block_id for b in blocks):
            raise ValueError(f"Unknown time block: {block_id}")
        result: List[TimeBlock] = []
        for block in blocks:
            ids = [i for i in block.task_ids if i != task_id]
            if block.id == block_id:
                ids.append(task_id)
            result.append(block.model_copy(update={"task_ids": ids}))
        if not self._save(day, result):
            return blocks
        return result


__all__ = ["TimeBlockService", "blocks_key"]
