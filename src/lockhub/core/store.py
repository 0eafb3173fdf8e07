"""Abstract interface for the key-value store backing the locks."""

from __future__ import annotations

from typing import Optional, Protocol


class LockStore(Protocol):
    """The two atomic primitives locks are built on, plus diagnostics."""

    async def try_set(self, key: str, value: str, ttl: int) -> bool:
        """Set ``key`` to ``value`` with a TTL in seconds, only if absent."""
        ...

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        """Delete ``key`` only if it currently holds ``expected``, atomically."""
        ...

    async def get(self, key: str) -> Optional[str]: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...
