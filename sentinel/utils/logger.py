# sentinel/utils/logger.py
from __future__ import annotations

import logging
import os
import pathlib
from typing import Optional

from .env import sentinel_home

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "info", home: Optional[pathlib.Path] = None) -> logging.Logger:
    """
    Attach a file handler on $SENTINEL_HOME/sentinel.log to the `sentinel`
    logger. Safe to call more than once; only the level changes on repeat calls.
    $SENTINEL_LOG_LEVEL wins over the configured level.
    """
    level = (os.environ.get("SENTINEL_LOG_LEVEL") or level or "info").upper()
    home = home or sentinel_home()
    home.mkdir(parents=True, exist_ok=True)
    log_file = str(home / "sentinel.log")

    logger = logging.getLogger("sentinel")
    logger.setLevel(getattr(logging, level, logging.INFO))

    has_handler = any(
        isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
        for h in logger.handlers
    )
    if not has_handler:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


def apply_log_level(level: str) -> None:
    """Apply the configured level unless $SENTINEL_LOG_LEVEL pins one."""
    if os.environ.get("SENTINEL_LOG_LEVEL"):
        return
    logging.getLogger("sentinel").setLevel(getattr(logging, (level or "info").upper(), logging.INFO))
