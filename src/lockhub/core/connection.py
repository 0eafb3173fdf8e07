"""Store client owning the connection lifecycle, with capped linear reconnection."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional, TypeVar

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from lockhub.core.errors import StoreConnectionExhaustedError, StoreError, StoreUnavailableError
from lockhub.core.store import LockStore
from lockhub.utils.logging import get_logger

T = TypeVar("T")

ConnectFactory = Callable[[], Awaitable[LockStore]]
Sleep = Callable[[float], Awaitable[None]]

CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


class ReconnectingStoreClient:
    """LockStore wrapper that is explicitly opened and closed by its owner.

    Nothing connects on construction. While the connection is down every
    primitive raises :class:`StoreUnavailableError` straight away and a
    background task retries the factory, waiting ``min(n * retry_step,
    max_delay)`` seconds after the n-th failure. Once ``max_retries``
    attempts have failed the client is exhausted for good and raises
    :class:`StoreConnectionExhaustedError` from then on.
    """

    def __init__(
        self,
        connect: ConnectFactory,
        *,
        max_retries: int = 10,
        retry_step: float = 0.05,
        max_delay: float = 0.5,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._connect = connect
        self._max_retries = max_retries
        self._retry_step = retry_step
        self._max_delay = max_delay
        self._sleep = sleep
        self._store: Optional[LockStore] = None
        self._exhausted: Optional[StoreConnectionExhaustedError] = None
        self._reconnect_task: Optional[asyncio.Task[None]] = None
        self._connect_lock = asyncio.Lock()
        self._closed = False
        self.logger = get_logger("ReconnectingStoreClient")

    @property
    def connected(self) -> bool:
        return self._store is not None

    @property
    def exhausted(self) -> bool:
        return self._exhausted is not None

    def delay_for(self, attempt: int) -> float:
        """Delay after the ``attempt``-th consecutive failure."""
        return min(attempt * self._retry_step, self._max_delay)

    async def open(self) -> None:
        self._closed = False
        await self.ensure_connected()

    async def close(self) -> None:
        self._closed = True
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        store, self._store = self._store, None
        if store is not None:
            await store.close()

    async def ensure_connected(self) -> LockStore:
        if self._exhausted is not None:
            raise self._exhausted
        if self._store is not None:
            return self._store
        async with self._connect_lock:
            if self._store is not None:
                return self._store
            if self._exhausted is not None:
                raise self._exhausted
            for attempt in range(1, self._max_retries + 1):
                if self._closed:
                    raise StoreUnavailableError("Lock store client is closed")
                try:
                    self._store = await self._connect()
                except Exception as exc:
                    if attempt == self._max_retries:
                        self._exhausted = StoreConnectionExhaustedError(attempt)
                        self.logger.error("Lock store connection failed permanently: %s", exc)
                        raise self._exhausted from exc
                    delay = self.delay_for(attempt)
                    self.logger.warning(
                        "Lock store connection attempt %d failed (%s); retrying in %.2fs",
                        attempt,
                        exc,
                        delay,
                    )
                    await self._sleep(delay)
                else:
                    self.logger.info("Lock store connected")
                    return self._store
        raise AssertionError("unreachable")  # pragma: no cover

    def _require(self) -> LockStore:
        if self._exhausted is not None:
            raise self._exhausted
        if self._store is None:
            self._schedule_reconnect()
            raise StoreUnavailableError("Lock store is disconnected")
        return self._store

    def _schedule_reconnect(self, stale: Optional[LockStore] = None) -> None:
        if self._closed or self._exhausted is not None:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(
            self._reconnect_in_background(stale), name="lockhub-store-reconnect"
        )

    async def _reconnect_in_background(self, stale: Optional[LockStore]) -> None:
        if stale is not None:
            try:
                await stale.close()
            except Exception:
                self.logger.debug("Failed to close stale store connection", exc_info=True)
        try:
            await self.ensure_connected()
        except StoreConnectionExhaustedError:
            pass  # already logged, every later call raises it
        except StoreUnavailableError:
            pass

    async def _guarded(self, call: Callable[[LockStore], Awaitable[T]]) -> T:
        store = self._require()
        try:
            return await call(store)
        except CONNECTION_ERRORS as exc:
            if self._store is store:
                self._store = None
                self.logger.warning("Lock store connection lost: %s", exc)
                self._schedule_reconnect(stale=store)
            raise StoreUnavailableError(f"Lock store connection lost: {exc}") from exc

    async def try_set(self, key: str, value: str, ttl: int) -> bool:
        return await self._guarded(lambda store: store.try_set(key, value, ttl))

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        return await self._guarded(lambda store: store.compare_and_delete(key, expected))

    async def get(self, key: str) -> Optional[str]:
        return await self._guarded(lambda store: store.get(key))

    async def ping(self) -> bool:
        return await self._guarded(lambda store: store.ping())

    async def check_health(self) -> bool:
        """Round-trip the store; a dead connection is marked lost and reconnected."""
        if self._store is None:
            return False
        try:
            return await self.ping()
        except (StoreError, RedisError) as exc:
            self.logger.warning("Lock store health check failed: %s", exc)
            return False
