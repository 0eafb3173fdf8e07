"""Locking primitives: store clients, mutex manager, group coordinator and waiter."""

from .connection import ReconnectingStoreClient
from .errors import (
    LockhubError,
    LockTimeoutError,
    StoreConnectionExhaustedError,
    StoreError,
    StoreUnavailableError,
    UnknownGroupError,
)
from .hierarchy import HierarchicalLockCoordinator
from .membership import MembershipResolver, StaticMembershipResolver
from .models import GroupAcquireResult, GroupReleaseResult, LockStatus, MemberLock, MemberUnlock
from .mutex import MutexManager
from .store import LockStore
from .store_memory import MemoryLockStore
from .waiter import LockWaiter

__all__ = [
    "ReconnectingStoreClient",
    "LockhubError",
    "LockTimeoutError",
    "StoreConnectionExhaustedError",
    "StoreError",
    "StoreUnavailableError",
    "UnknownGroupError",
    "HierarchicalLockCoordinator",
    "MembershipResolver",
    "StaticMembershipResolver",
    "GroupAcquireResult",
    "GroupReleaseResult",
    "LockStatus",
    "MemberLock",
    "MemberUnlock",
    "MutexManager",
    "LockStore",
    "MemoryLockStore",
    "LockWaiter",
]
