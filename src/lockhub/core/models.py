"""Data models shared across lockhub."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Snake case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LockStatus(WireModel):
    """Point-in-time view of a key. Not authoritative."""

    locked: bool
    holder: Optional[str] = None


class MemberLock(WireModel):
    id: str
    locked: bool


class MemberUnlock(WireModel):
    id: str
    unlocked: bool


class GroupAcquireResult(WireModel):
    """Outcome of an all-or-nothing group acquisition."""

    success: bool
    group_locked: bool = False
    member_locks: List[MemberLock] = Field(default_factory=list)
    failed_member: Optional[str] = None
    message: Optional[str] = None
    rollback_failures: List[str] = Field(default_factory=list)


class GroupReleaseResult(WireModel):
    """Per-key outcomes of a best-effort group release."""

    group_unlocked: bool
    member_unlocks: List[MemberUnlock] = Field(default_factory=list)

    @property
    def all_released(self) -> bool:
        return self.group_unlocked and all(item.unlocked for item in self.member_unlocks)
