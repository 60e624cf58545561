"""Logger factory shared by the services."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from taskboard.core.settings import LOGGING

ROOT_LOGGER = "taskboard"


def _ensure_root(path: Optional[Path] = None) -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        target = Path(path or LOGGING.path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = RotatingFileHandler(
                target,
                maxBytes=LOGGING.max_bytes,
                backupCount=LOGGING.backup_count,
                encoding="utf-8",
            )
        except OSError:
            # read-only data dir: keep logging to stderr
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOGGING.format))
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, LOGGING.level.upper(), logging.INFO))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``taskboard.<name>``, attaching the rotating file handler once."""

    _ensure_root()
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


__all__ = ["get_logger", "ROOT_LOGGER"]
