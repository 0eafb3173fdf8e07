"""Lock consumers built on the core primitives."""

from .session import SessionAgent

__all__ = ["SessionAgent"]
