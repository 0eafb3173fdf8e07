"""Typed reads of LOCKHUB_* style environment variables.

Unset and blank variables both fall back to the default. A value that does
not convert raises ``ValueError`` naming the variable, so a bad deployment
fails at startup rather than on the first lock request.
"""

from __future__ import annotations

import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

_SWITCHED_OFF = frozenset({"0", "false", "no", "off", "disabled"})


def read_env(name: str, convert: Callable[[str], T], *, default: Optional[T] = None) -> Optional[T]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return convert(raw)
    except ValueError as exc:
        raise ValueError(f"{name} has an invalid value {raw!r}: {exc}") from exc


def env_flag(name: str, *, default: bool = False) -> bool:
    flag = read_env(name, lambda raw: raw.lower() not in _SWITCHED_OFF)
    return default if flag is None else flag


def env_int(name: str, *, default: Optional[int] = None) -> Optional[int]:
    return read_env(name, int, default=default)
