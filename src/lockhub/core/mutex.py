"""Single-key acquire/release/query built directly on the lock store."""

from __future__ import annotations

from typing import Optional

from redis.exceptions import RedisError

from lockhub.core.errors import StoreError
from lockhub.core.models import LockStatus
from lockhub.core.store import LockStore
from lockhub.utils.logging import get_logger

DEFAULT_TTL = 30
DEFAULT_KEY_PREFIX = "lock:"

# Anything the store can raise is a failed operation, never a crash.
STORE_FAILURES = (StoreError, RedisError, OSError)


class MutexManager:
    """Resource-class-agnostic locks over namespaced keys.

    Every operation is one store round trip. Store failures are logged with
    the key and reported as "not acquired" / "not released", so a
    disconnected store never grants exclusivity.
    """

    def __init__(
        self,
        store: LockStore,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        default_ttl: int = DEFAULT_TTL,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self._store = store
        self.key_prefix = key_prefix
        self.default_ttl = default_ttl
        self.logger = get_logger("MutexManager")

    def key_for(self, resource_class: str, resource_id: str) -> str:
        return f"{self.key_prefix}{resource_class}:{resource_id}"

    async def acquire(self, key: str, holder: str, ttl: Optional[int] = None) -> bool:
        """Take ``key`` for ``holder`` unless someone holds it. Never extends a TTL."""
        if not holder:
            raise ValueError("holder is required")
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        try:
            acquired = await self._store.try_set(key, holder, ttl)
        except STORE_FAILURES as exc:
            self.logger.error("Error acquiring lock for %s: %s", key, exc)
            return False
        if acquired:
            self.logger.debug("Lock %s acquired by %s for %ss", key, holder, ttl)
        return acquired

    async def release(self, key: str, holder: str) -> bool:
        """Delete ``key`` only if ``holder`` still owns it (atomic on the store)."""
        if not holder:
            raise ValueError("holder is required")
        try:
            released = await self._store.compare_and_delete(key, holder)
        except STORE_FAILURES as exc:
            self.logger.error("Error releasing lock for %s: %s", key, exc)
            return False
        if released:
            self.logger.debug("Lock %s released by %s", key, holder)
        return released

    async def query(self, key: str) -> LockStatus:
        # Diagnostic snapshot only; it can be stale by the time it returns.
        try:
            holder = await self._store.get(key)
        except STORE_FAILURES as exc:
            self.logger.error("Error checking lock for %s: %s", key, exc)
            return LockStatus(locked=False, holder=None)
        return LockStatus(locked=holder is not None, holder=holder)
