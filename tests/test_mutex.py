from __future__ import annotations

import pytest

from lockhub.core.errors import StoreUnavailableError
from lockhub.core.mutex import MutexManager
from lockhub.core.store_memory import MemoryLockStore


class UnreachableStore:
    async def try_set(self, key, value, ttl):
        raise StoreUnavailableError("Lock store is disconnected")

    async def compare_and_delete(self, key, expected):
        raise StoreUnavailableError("Lock store is disconnected")

    async def get(self, key):
        raise ConnectionRefusedError("connection refused")


def test_key_for_namespaces_resource_classes(mutex):
    assert mutex.key_for("user", "42") == "lock:user:42"
    assert mutex.key_for("contract", "c-1") == "lock:contract:c-1"
    assert MutexManager(MemoryLockStore(), key_prefix="app:").key_for("company", "acme") == "app:company:acme"


@pytest.mark.asyncio
async def test_second_holder_is_refused(mutex):
    key = mutex.key_for("user", "u1")
    assert await mutex.acquire(key, "h1", 30) is True
    assert await mutex.acquire(key, "h2", 30) is False
    # Re-acquiring is not reentrant either.
    assert await mutex.acquire(key, "h1", 30) is False


@pytest.mark.asyncio
async def test_release_by_holder_unlocks(mutex):
    key = mutex.key_for("user", "u1")
    await mutex.acquire(key, "h1", 30)
    assert await mutex.release(key, "h1") is True
    status = await mutex.query(key)
    assert status.locked is False
    assert status.holder is None


@pytest.mark.asyncio
async def test_release_by_other_holder_is_refused(mutex):
    key = mutex.key_for("contract", "c1")
    await mutex.acquire(key, "h1", 30)
    assert await mutex.release(key, "h2") is False
    status = await mutex.query(key)
    assert status.locked is True
    assert status.holder == "h1"


@pytest.mark.asyncio
async def test_release_of_absent_key_is_false(mutex):
    assert await mutex.release("lock:user:nobody", "h1") is False


@pytest.mark.asyncio
async def test_default_ttl_is_used(clock):
    mutex = MutexManager(MemoryLockStore(clock=clock), default_ttl=7)
    assert await mutex.acquire("lock:user:a", "h1") is True
    clock.now += 6.9
    assert (await mutex.query("lock:user:a")).holder == "h1"
    clock.now += 0.2
    assert (await mutex.query("lock:user:a")).locked is False
    assert await mutex.acquire("lock:user:a", "h2") is True


@pytest.mark.asyncio
async def test_invalid_arguments_never_reach_the_store(mutex, store):
    with pytest.raises(ValueError):
        await mutex.acquire("lock:user:a", "", 30)
    with pytest.raises(ValueError):
        await mutex.acquire("lock:user:a", "h1", 0)
    with pytest.raises(ValueError):
        await mutex.release("lock:user:a", "")
    assert store.set_calls == []
    assert store.delete_calls == []


@pytest.mark.asyncio
async def test_unreachable_store_fails_closed():
    mutex = MutexManager(UnreachableStore())
    assert await mutex.acquire("lock:user:a", "h1", 30) is False
    assert await mutex.release("lock:user:a", "h1") is False
    status = await mutex.query("lock:user:a")
    assert status.locked is False
