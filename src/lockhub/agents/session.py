"""Session agent that claims a member lock, through its group, for a whole session."""

from __future__ import annotations

import random
import uuid
from typing import Dict, List, Optional

from lockhub.core.errors import LockhubError, LockTimeoutError
from lockhub.core.membership import MembershipResolver
from lockhub.core.waiter import LockWaiter
from lockhub.utils.logging import get_logger


class SessionAgent:
    """Wait-acquires the locks a session needs and tracks them as owned.

    ``init`` picks one of three paths: a given member is locked directly; a
    given group is locked and then one random member of it; with neither, a
    random group is chosen first. Each lock is taken with its own
    :meth:`LockWaiter.wait_for_lock` call, so a member timeout can happen
    after the group lock is already held. With ``release_on_failure`` (the
    default) everything already owned is released before the error is
    raised; otherwise it stays owned until :meth:`disconnect`.
    """

    def __init__(
        self,
        waiter: LockWaiter,
        membership: MembershipResolver,
        *,
        member_id: Optional[str] = None,
        group_id: Optional[str] = None,
        holder: Optional[str] = None,
        ttl: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        release_on_failure: bool = True,
        group_class: str = "company",
        member_class: str = "user",
        rng: Optional[random.Random] = None,
    ) -> None:
        self._waiter = waiter
        self._membership = membership
        self.member_id = member_id
        self.group_id = group_id
        self.holder = holder or str(uuid.uuid4())
        self.ttl = ttl
        self.timeout_ms = timeout_ms if timeout_ms is not None else waiter.default_timeout_ms
        self.release_on_failure = release_on_failure
        self.group_class = group_class
        self.member_class = member_class
        self._rng = rng or random.Random()
        self.owned_locks: List[str] = []
        self.logger = get_logger("SessionAgent")

    async def __aenter__(self) -> "SessionAgent":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    def _key(self, resource_class: str, resource_id: str) -> str:
        return self._waiter.mutex.key_for(resource_class, resource_id)

    async def init(self) -> None:
        if self.owned_locks:
            raise LockhubError("Session agent already holds locks; disconnect first")
        claimed = False
        try:
            await self._claim_all()
            claimed = True
        finally:
            # Also runs when the wait is cancelled part-way through.
            if not claimed and self.owned_locks and self.release_on_failure:
                self.logger.warning("Initialisation failed; releasing %d owned lock(s)", len(self.owned_locks))
                await self.disconnect()

    async def _claim_all(self) -> None:
        if self.member_id:
            await self._claim(self._key(self.member_class, self.member_id))
            return

        group_id = self.group_id or await self._pick_group()
        await self._claim(self._key(self.group_class, group_id))
        members = await self._membership.resolve(group_id)
        if not members:
            raise LockhubError(f"Group {group_id} has no members")
        member_id = self._rng.choice(members)
        await self._claim(self._key(self.member_class, member_id))
        self.group_id = group_id
        self.member_id = member_id

    async def _pick_group(self) -> str:
        groups = await self._membership.groups()
        if not groups:
            raise LockhubError("No groups available to pick from")
        return self._rng.choice(groups)

    async def _claim(self, key: str) -> None:
        if not await self._waiter.wait_for_lock(key, self.holder, self.ttl, self.timeout_ms):
            raise LockTimeoutError(key, self.timeout_ms)
        self.owned_locks.append(key)
        self.logger.info("Session %s owns %s", self.holder, key)

    async def disconnect(self) -> Dict[str, bool]:
        """Release every owned lock (token checked) and forget them."""
        outcomes: Dict[str, bool] = {}
        for key in reversed(self.owned_locks):
            outcomes[key] = await self._waiter.mutex.release(key, self.holder)
            if not outcomes[key]:
                self.logger.warning("Lock %s was no longer held by %s", key, self.holder)
        self.owned_locks = []
        return outcomes
