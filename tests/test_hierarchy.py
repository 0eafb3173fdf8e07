from __future__ import annotations

import asyncio

import pytest

from lockhub.core.hierarchy import HierarchicalLockCoordinator
from lockhub.core.mutex import MutexManager


class ForgetfulMutex(MutexManager):
    """Mutex whose releases of one key always fail, as if it expired."""

    def __init__(self, store, broken_key: str) -> None:
        super().__init__(store)
        self._broken_key = broken_key

    async def release(self, key, holder):
        if key == self._broken_key:
            return False
        return await super().release(key, holder)


@pytest.fixture
def coordinator(mutex):
    return HierarchicalLockCoordinator(mutex)


@pytest.mark.asyncio
async def test_acquire_group_locks_group_and_every_member(coordinator, mutex):
    result = await coordinator.acquire_group("g1", ["m1", "m2", "m3"], "h1", 30)

    assert result.success is True
    assert result.group_locked is True
    assert [(item.id, item.locked) for item in result.member_locks] == [("m1", True), ("m2", True), ("m3", True)]
    assert (await mutex.query("lock:company:g1")).holder == "h1"
    for member in ("m1", "m2", "m3"):
        assert (await mutex.query(f"lock:user:{member}")).holder == "h1"


@pytest.mark.asyncio
async def test_member_failure_rolls_back_everything(coordinator, mutex):
    await mutex.acquire("lock:user:m2", "other", 30)

    result = await coordinator.acquire_group("g1", ["m1", "m2", "m3"], "h1", 30)

    assert result.success is False
    assert result.failed_member == "m2"
    assert result.rollback_failures == []
    assert (await mutex.query("lock:company:g1")).locked is False
    assert (await mutex.query("lock:user:m1")).locked is False
    assert (await mutex.query("lock:user:m3")).locked is False
    assert (await mutex.query("lock:user:m2")).holder == "other"


@pytest.mark.asyncio
async def test_locked_group_never_touches_members(coordinator, mutex, store):
    await mutex.acquire("lock:company:g1", "other", 30)
    store.set_calls.clear()

    result = await coordinator.acquire_group("g1", ["m1", "m2"], "h1", 30)

    assert result.success is False
    assert result.failed_member is None
    assert result.message == "Group g1 already locked"
    assert store.set_calls == ["lock:company:g1"]
    assert (await mutex.query("lock:user:m1")).locked is False


@pytest.mark.asyncio
async def test_rollback_failure_is_reported_but_verdict_stands(store):
    mutex = ForgetfulMutex(store, broken_key="lock:user:m1")
    coordinator = HierarchicalLockCoordinator(mutex)
    await mutex.acquire("lock:user:m2", "other", 30)

    result = await coordinator.acquire_group("g1", ["m1", "m2"], "h1", 30)

    assert result.success is False
    assert result.failed_member == "m2"
    assert result.rollback_failures == ["lock:user:m1"]
    # The group key is still released even though a member release failed.
    assert (await mutex.query("lock:company:g1")).locked is False
    # The stranded member lock is left to its TTL.
    assert (await mutex.query("lock:user:m1")).holder == "h1"


@pytest.mark.asyncio
async def test_concurrent_group_acquisitions_have_one_winner(coordinator, mutex, store):
    first, second = await asyncio.gather(
        coordinator.acquire_group("g1", ["m1", "m2"], "h1", 30),
        coordinator.acquire_group("g1", ["m1", "m2"], "h2", 30),
    )

    assert [first.success, second.success].count(True) == 1
    winner, loser = ("h1", second) if first.success else ("h2", first)
    assert loser.failed_member is None
    assert loser.member_locks == []
    assert (await mutex.query("lock:user:m1")).holder == winner
    assert (await mutex.query("lock:user:m2")).holder == winner


@pytest.mark.asyncio
async def test_overlapping_groups_exclude_each_other_on_shared_members(coordinator, mutex):
    first = await coordinator.acquire_group("a", ["m1", "m2"], "h1", 30)
    second = await coordinator.acquire_group("b", ["m3", "m2"], "h2", 30)

    assert first.success is True
    assert second.success is False
    assert second.failed_member == "m2"
    assert (await mutex.query("lock:company:b")).locked is False
    assert (await mutex.query("lock:user:m3")).locked is False


@pytest.mark.asyncio
async def test_release_group_reports_each_key(coordinator, mutex):
    await coordinator.acquire_group("g1", ["m1", "m2"], "h1", 30)
    await mutex.release("lock:user:m1", "h1")

    result = await coordinator.release_group("g1", ["m1", "m2"], "h1")

    assert result.group_unlocked is True
    assert [(item.id, item.unlocked) for item in result.member_unlocks] == [("m1", False), ("m2", True)]
    assert result.all_released is False
    assert (await mutex.query("lock:user:m2")).locked is False


@pytest.mark.asyncio
async def test_release_group_by_other_holder_leaves_locks(coordinator, mutex):
    await coordinator.acquire_group("g1", ["m1"], "h1", 30)

    result = await coordinator.release_group("g1", ["m1"], "intruder")

    assert result.group_unlocked is False
    assert result.member_unlocks[0].unlocked is False
    assert (await mutex.query("lock:company:g1")).holder == "h1"


@pytest.mark.asyncio
async def test_custom_resource_classes(mutex):
    coordinator = HierarchicalLockCoordinator(mutex, group_class="team", member_class="seat")
    result = await coordinator.acquire_group("t1", ["s1"], "h1", 30)
    assert result.success is True
    assert (await mutex.query("lock:team:t1")).locked is True
    assert (await mutex.query("lock:seat:s1")).locked is True


def test_result_serializes_with_camel_case():
    from lockhub.core.models import GroupReleaseResult, MemberUnlock

    result = GroupReleaseResult(group_unlocked=True, member_unlocks=[MemberUnlock(id="m1", unlocked=False)])
    assert result.model_dump(by_alias=True) == {
        "groupUnlocked": True,
        "memberUnlocks": [{"id": "m1", "unlocked": False}],
    }
