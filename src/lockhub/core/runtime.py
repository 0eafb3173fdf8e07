"""Wiring of the store client and the lock components from settings."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from lockhub.agents.session import SessionAgent
from lockhub.core.connection import ReconnectingStoreClient
from lockhub.core.hierarchy import HierarchicalLockCoordinator
from lockhub.core.membership import MembershipResolver, StaticMembershipResolver
from lockhub.core.mutex import MutexManager
from lockhub.core.settings import ServiceSettings
from lockhub.core.store import LockStore
from lockhub.core.store_memory import MemoryLockStore
from lockhub.core.store_redis import RedisLockStore
from lockhub.core.waiter import LockWaiter
from lockhub.services.audit_logger import AuditLogger, LockDecision
from lockhub.utils.logging import get_logger


def build_store_client(settings: ServiceSettings) -> ReconnectingStoreClient:
    """Create an unopened store client for the configured backend."""
    store_settings = settings.store
    if store_settings.backend == "memory":
        memory_store = MemoryLockStore()

        async def connect() -> LockStore:
            return memory_store

    else:

        async def connect() -> LockStore:
            return await RedisLockStore.connect(
                store_settings.redis_url, socket_timeout=store_settings.socket_timeout
            )

    reconnect = settings.reconnect
    return ReconnectingStoreClient(
        connect,
        max_retries=reconnect.max_retries,
        retry_step=reconnect.retry_step_ms / 1000.0,
        max_delay=reconnect.max_delay_ms / 1000.0,
    )


class LockRuntime:
    """Owns one store connection and the lock components sharing it.

    The connection is opened by :meth:`start` and closed by :meth:`stop`;
    nothing touches the store before that.
    """

    def __init__(
        self,
        settings: ServiceSettings,
        *,
        store_client: Optional[ReconnectingStoreClient] = None,
        membership: Optional[MembershipResolver] = None,
    ) -> None:
        self.settings = settings
        self.store_client = store_client or build_store_client(settings)
        self.mutex = MutexManager(
            self.store_client,
            key_prefix=settings.store.key_prefix,
            default_ttl=settings.store.default_ttl,
        )
        self.coordinator = HierarchicalLockCoordinator(self.mutex)
        self.waiter = LockWaiter(
            self.mutex,
            backoff_ms=settings.waiter.backoff_ms,
            default_ttl=settings.waiter.ttl,
            default_timeout_ms=settings.waiter.timeout_ms,
        )
        self.membership = membership or StaticMembershipResolver(settings.groups)
        self.audit_logger = AuditLogger(settings.audit_log_path) if settings.audit_log_path else None
        self.logger = get_logger("LockRuntime")
        self._started = False
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        async with self._lock:
            if self._started:
                return
            self.logger.info("Opening %s lock store", self.settings.store.backend)
            await self.store_client.open()
            self._started = True

    async def stop(self) -> None:
        async with self._lock:
            if not self._started:
                return
            self.logger.info("Closing lock store")
            await self.store_client.close()
            self._started = False

    def session_agent(self, **kwargs: Any) -> SessionAgent:
        return SessionAgent(self.waiter, self.membership, **kwargs)

    async def audit(self, event: str, key: str, holder: Optional[str], granted: bool, **details: Any) -> None:
        if self.audit_logger is None:
            return
        decision = LockDecision(event=event, key=key, holder=holder, granted=granted, details=details)
        try:
            await self.audit_logger.record(decision)
        except OSError:
            self.logger.debug("Failed to persist audit log", exc_info=True)
