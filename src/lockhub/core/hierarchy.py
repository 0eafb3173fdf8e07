"""Group (parent) locks composed with member (child) locks, all or nothing."""

from __future__ import annotations

from typing import List, Optional, Sequence

from lockhub.core.models import GroupAcquireResult, GroupReleaseResult, MemberLock, MemberUnlock
from lockhub.core.mutex import MutexManager
from lockhub.utils.logging import get_logger


class HierarchicalLockCoordinator:
    """Acquire a group key, then every member key, rolling back on the first miss.

    The sequence is not atomic as a whole: between steps another client can
    observe the group locked with only some members held. Member keys live
    in their own namespace, so two groups that share a member still exclude
    each other on it.
    """

    def __init__(
        self,
        mutex: MutexManager,
        *,
        group_class: str = "company",
        member_class: str = "user",
    ) -> None:
        self._mutex = mutex
        self.group_class = group_class
        self.member_class = member_class
        self.logger = get_logger("HierarchicalLockCoordinator")

    def group_key(self, group_id: str) -> str:
        return self._mutex.key_for(self.group_class, group_id)

    def member_key(self, member_id: str) -> str:
        return self._mutex.key_for(self.member_class, member_id)

    async def acquire_group(
        self,
        group_id: str,
        member_ids: Sequence[str],
        holder: str,
        ttl: Optional[int] = None,
    ) -> GroupAcquireResult:
        group_key = self.group_key(group_id)
        if not await self._mutex.acquire(group_key, holder, ttl):
            return GroupAcquireResult(success=False, message=f"Group {group_id} already locked")

        member_locks: List[MemberLock] = []
        locked_members: List[str] = []
        for member_id in member_ids:
            locked = await self._mutex.acquire(self.member_key(member_id), holder, ttl)
            member_locks.append(MemberLock(id=member_id, locked=locked))
            if locked:
                locked_members.append(member_id)
                continue

            self.logger.warning(
                "Failed to lock member %s of group %s, rolling back %d member lock(s)",
                member_id,
                group_id,
                len(locked_members),
            )
            rollback_failures = await self._rollback(group_key, locked_members, holder)
            return GroupAcquireResult(
                success=False,
                member_locks=member_locks,
                failed_member=member_id,
                message=f"Failed to lock member {member_id}, all locks rolled back",
                rollback_failures=rollback_failures,
            )

        self.logger.info("Group %s locked with %d member(s) by %s", group_id, len(locked_members), holder)
        return GroupAcquireResult(success=True, group_locked=True, member_locks=member_locks)

    async def _rollback(self, group_key: str, locked_members: Sequence[str], holder: str) -> List[str]:
        failures: List[str] = []
        keys = [self.member_key(member_id) for member_id in reversed(locked_members)]
        keys.append(group_key)
        for key in keys:
            if not await self._mutex.release(key, holder):
                # Left to expire by TTL; the failed verdict stands.
                self.logger.warning("Rollback could not release %s; it will expire by TTL", key)
                failures.append(key)
        return failures

    async def release_group(
        self,
        group_id: str,
        member_ids: Sequence[str],
        holder: str,
    ) -> GroupReleaseResult:
        """Best-effort cleanup: every key is tried regardless of the others."""
        group_unlocked = await self._mutex.release(self.group_key(group_id), holder)
        member_unlocks = [
            MemberUnlock(id=member_id, unlocked=await self._mutex.release(self.member_key(member_id), holder))
            for member_id in member_ids
        ]
        result = GroupReleaseResult(group_unlocked=group_unlocked, member_unlocks=member_unlocks)
        if not result.all_released:
            self.logger.info("Group %s released partially by %s", group_id, holder)
        return result
