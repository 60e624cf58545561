"""Break a task into subtask titles with an OpenAI-compatible chat endpoint."""
from __future__ import annotations

import os
import re
from typing import List, Optional

import requests

from taskboard.core.log import get_logger
from taskboard.core.settings import AI, AISettings

log = get_logger("ai")

FAILED_MESSAGE = "Failed to break down task. Please try again later."

_ITEM_RE = re.compile(r"^\s*\d+[.)]\s+(.+?)\s*$")


class SubtaskSuggestionError(RuntimeError):
    """Suggestion request failed; no task state was touched."""


def build_prompt(title: str, description: str = "") -> str:
    lines = [
        "Break down this task into 3-5 smaller, actionable subtasks:",
        f"Task: {title}",
    ]
    if description:
        lines.append(f"Description: {description}")
    lines.append("")
    lines.append(
        "Please format your response as a numbered list of subtasks only. "
        "Each subtask should be clear, specific, and actionable."
    )
    return "\n".join(lines)


def parse_numbered_list(content: str) -> List[str]:
    items: List[str] = []
    for line in (content or "").splitlines():
        match = _ITEM_RE.match(line)
        if match:
            items.append(match.group(1).strip())
    return items


def breakdown_task(
    title: str,
    description: str = "",
    *,
    session: Optional[requests.Session] = None,
    settings: AISettings = AI,
    api_key: Optional[str] = None,
) -> List[str]:
    """Return suggested subtask titles for ``title``.

    Raises :class:`SubtaskSuggestionError` on a missing key, HTTP failure or an
    unusable reply.
    """

    key = api_key or os.getenv(settings.api_key_env)
    if not key:
        log.error("%s is not set", settings.api_key_env)
        raise SubtaskSuggestionError(FAILED_MESSAGE)

    payload = {
        "model": settings.model,
        "messages": [{"role": "user", "content": build_prompt(title, description)}],
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    headers = {"Content-Type": "application/json", "Authorization": f"Bearer {key}"}
    http = session or requests.Session()
    try:
        resp = http.post(settings.api_url, headers=headers, json=payload, timeout=settings.timeout_sec)
        resp.raise_for_status()
        data = resp.json()
        content = data["choices"][0]["message"]["content"]
    except requests.RequestException as exc:
        log.error("Subtask breakdown request failed: %s", exc)
        raise SubtaskSuggestionError(FAILED_MESSAGE) from exc
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        log.error("Unexpected subtask breakdown reply: %s", exc)
        raise SubtaskSuggestionError(FAILED_MESSAGE) from exc

    subtasks = parse_numbered_list(content)
    if not subtasks:
        log.warning("Subtask breakdown reply had no numbered items")
    return subtasks


__all__ = ["SubtaskSuggestionError", "breakdown_task", "build_prompt", "parse_numbered_list"]
