"""Blocking acquisition with timeout by polling the mutex manager."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional, Set

from lockhub.core.mutex import MutexManager
from lockhub.utils.logging import get_logger

DEFAULT_BACKOFF_MS = 200
DEFAULT_WAIT_TTL = 5
DEFAULT_TIMEOUT_MS = 5000


class LockWaiter:
    """Retries ``acquire`` every ``backoff_ms`` until it succeeds or time runs out.

    Polling, not wake-on-release: a waiter notices a freed lock at most one
    backoff interval late. The only way to stop a wait early is its timeout
    (or cancelling the awaiting task). A single attempt gets the time left
    before the deadline, or at least one backoff interval; an attempt still
    in flight past that is abandoned and its key released with the caller's
    token in case the write landed, so a timed-out wait returns within
    ``timeout_ms`` plus one backoff interval even against a slow store.
    """

    def __init__(
        self,
        mutex: MutexManager,
        *,
        backoff_ms: int = DEFAULT_BACKOFF_MS,
        default_ttl: int = DEFAULT_WAIT_TTL,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if backoff_ms <= 0:
            raise ValueError("backoff_ms must be positive")
        self.mutex = mutex
        self.backoff_ms = backoff_ms
        self.default_ttl = default_ttl
        self.default_timeout_ms = default_timeout_ms
        self._clock = clock
        self._sleep = sleep
        self._cleanups: Set[asyncio.Task[bool]] = set()
        self.logger = get_logger("LockWaiter")

    async def wait_for_lock(
        self,
        key: str,
        holder: str,
        ttl: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ) -> bool:
        ttl = self.default_ttl if ttl is None else ttl
        timeout_ms = self.default_timeout_ms if timeout_ms is None else timeout_ms
        backoff = self.backoff_ms / 1000.0
        deadline = self._clock() + timeout_ms / 1000.0
        attempts = 0
        while True:
            attempts += 1
            budget = max(deadline - self._clock(), backoff)
            try:
                if await asyncio.wait_for(self.mutex.acquire(key, holder, ttl), timeout=budget):
                    return True
            except asyncio.TimeoutError:
                self.logger.warning("Acquire of %s still pending after %.2fs; abandoning it", key, budget)
                self._release_abandoned(key, holder)
                return False
            remaining = deadline - self._clock()
            if remaining <= 0:
                self.logger.info("Timed out waiting for %s after %d attempt(s)", key, attempts)
                return False
            await self._sleep(min(backoff, remaining))

    def _release_abandoned(self, key: str, holder: str) -> None:
        task = asyncio.create_task(self.mutex.release(key, holder), name=f"lockhub-release-{key}")
        self._cleanups.add(task)
        task.add_done_callback(self._cleanups.discard)
