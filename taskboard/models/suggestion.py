"""Display-only task placeholders produced by the triage selector."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field


def _placeholder_id() -> str:
    return f"gen-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Suggestion:
    """Generic advice shown when no real task matches.

    Never stored; ``id`` is random per call and carries no identity.
    """

    title: str
    id: str = field(default_factory=_placeholder_id)
    status: str = "pending"
    persistent: bool = False


__all__ = ["Suggestion"]
