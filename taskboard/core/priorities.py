"""Utility helpers for task priorities."""
from __future__ import annotations

from typing import Dict, Optional

# Levels ordered from most to least urgent; ``None`` means "no priority".
PRIORITY_META: Dict[str, Dict[str, object]] = {
    "critical": {"label": "Critical", "rank": 0},
    "high": {"label": "High priority", "rank": 1},
    "medium": {"label": "Medium priority", "rank": 2},
    "low": {"label": "Low priority", "rank": 3},
}

NO_PRIORITY_META: Dict[str, object] = {"label": "No priority", "rank": 4}


def normalize_priority(value: Optional[str]) -> Optional[str]:
    """Map external values onto a supported level, ``None`` when unknown."""
    if value is None:
        return None
    key = str(value).strip().lower()
    return key if key in PRIORITY_META else None


def _meta(value: Optional[str]) -> Dict[str, object]:
    return PRIORITY_META.get(normalize_priority(value) or "", NO_PRIORITY_META)


def priority_label(value: Optional[str]) -> str:
    return str(_meta(value)["label"])


def priority_rank(value: Optional[str]) -> int:
    """Sort key: critical first, tasks without priority last."""
    return int(_meta(value)["rank"])


__all__ = ["PRIORITY_META", "normalize_priority", "priority_label", "priority_rank"]
