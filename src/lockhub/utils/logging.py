"""Logging helpers with consistent formatting."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from rich.logging import RichHandler

from lockhub.utils.env import env_flag


def _level_from_env(default: int) -> int:
    name = os.getenv("LOCKHUB_LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def get_logger(name: str, level: Optional[int] = None, *, rich: Optional[bool] = None) -> logging.Logger:
    """Configure and return a ``lockhub.<name>`` logger.

    Level comes from LOCKHUB_LOG_LEVEL unless given; LOCKHUB_RICH_LOGS=0
    switches to a plain stdout handler (useful under log collectors).
    """
    logger = logging.getLogger(f"lockhub.{name}")
    if logger.handlers:
        return logger

    level = _level_from_env(logging.INFO) if level is None else level
    if rich is None:
        rich = env_flag("LOCKHUB_RICH_LOGS", default=True)
    logger.setLevel(level)

    if rich:
        handler: logging.Handler = RichHandler(
            level=level,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(name)s %(levelname)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger.addHandler(handler)
    logger.propagate = False
    return logger
