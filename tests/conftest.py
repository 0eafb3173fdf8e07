from __future__ import annotations

from typing import List

import pytest

from lockhub.core.mutex import MutexManager
from lockhub.core.store_memory import MemoryLockStore


class RecordingStore(MemoryLockStore):
    """Memory store that remembers which keys were touched."""

    def __init__(self) -> None:
        super().__init__()
        self.set_calls: List[str] = []
        self.delete_calls: List[str] = []

    async def try_set(self, key: str, value: str, ttl: int) -> bool:
        self.set_calls.append(key)
        return await super().try_set(key, value, ttl)

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        self.delete_calls.append(key)
        return await super().compare_and_delete(key, expected)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def mutex(store: RecordingStore) -> MutexManager:
    return MutexManager(store)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
