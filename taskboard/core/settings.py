"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``TASKBOARD_DATA_DIR`` wins over every platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    override = environ.get("TASKBOARD_DATA_DIR")
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


APP_NAME = "Taskboard"


DATA_DIR = get_default_data_dir(APP_NAME)
LOG_DIR = DATA_DIR / "logs"

DB_PATH = DATA_DIR / "taskboard.db"
LOG_PATH = LOG_DIR / "taskboard.log"


@dataclass(frozen=True)
class ReminderSettings:
    poll_interval_sec: int = 60
    # display banding of timed tasks (minutes until due)
    imminent_minutes: int = 30
    imminent_max_minutes: int = 60
    upcoming_max_minutes: int = 120
    # a timed task stays on the reminder list while -overdue_window < diff <= upcoming_max
    overdue_window_minutes: int = 1440
    # notification window is (notify_after_minutes, notify_before_minutes]
    notify_after_minutes: int = -5
    notify_before_minutes: int = 60
    notification_title: str = "Task Reminder"


@dataclass(frozen=True)
class TriageSettings:
    max_results: int = 3
    quick_time_minutes: int = 10
    short_time_minutes: int = 25
    nearly_done_ratio: float = 0.7
    short_max_subtasks: int = 3
    default_suggestions: tuple[str, ...] = (
        "Clear your desk for two minutes",
        "Reply to one pending message",
        "Write down the next step of your biggest task",
    )


@dataclass(frozen=True)
class CalendarSettings:
    planner_source: str = "planner"
    event_id_prefix: str = "planner-"
    default_color: str = "#6B7280"
    description_prefix: str = "Planned tasks: "
    events_key: str = "calendar_events"
    time_blocks_key_prefix: str = "timeBlocks_"


@dataclass(frozen=True)
class AISettings:
    api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    model: str = "llama-3.1-8b-instant"
    api_key_env: str = "GROQ_API_KEY"
    temperature: float = 0.3
    max_tokens: int = 300
    timeout_sec: int = 30


@dataclass(frozen=True)
class LoggingSettings:
    path: Path = LOG_PATH
    level: str = "INFO"
    max_bytes: int = 1_000_000
    backup_count: int = 3
    format: str = "%(asctime)s [%(levelname)s] %(message)s"


REMINDERS = ReminderSettings()
TRIAGE = TriageSettings()
CALENDAR = CalendarSettings()
AI = AISettings()
LOGGING = LoggingSettings()

EXPORT_VERSION = "1.0.0"


__all__ = [
    "AI",
    "APP_NAME",
    "CALENDAR",
    "DATA_DIR",
    "DB_PATH",
    "EXPORT_VERSION",
    "LOGGING",
    "LOG_DIR",
    "LOG_PATH",
    "REMINDERS",
    "TRIAGE",
    "AISettings",
    "CalendarSettings",
    "LoggingSettings",
    "ReminderSettings",
    "TriageSettings",
    "get_default_data_dir",
]
