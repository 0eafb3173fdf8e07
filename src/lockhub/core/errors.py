"""Exception hierarchy for lockhub."""

from __future__ import annotations


class LockhubError(Exception):
    """Base class for every error raised by lockhub."""


class StoreError(LockhubError):
    """The lock store could not complete an operation."""


class StoreUnavailableError(StoreError):
    """The store client is currently disconnected."""


class StoreConnectionExhaustedError(StoreError):
    """Reconnection gave up after the configured retry budget. Not retryable."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Lock store unreachable after {attempts} reconnection attempts")
        self.attempts = attempts


class UnknownGroupError(LockhubError, KeyError):
    """The membership resolver has no entry for a group."""

    def __init__(self, group_id: str) -> None:
        super().__init__(group_id)
        self.group_id = group_id

    def __str__(self) -> str:
        return f"Unknown group: {self.group_id}"


class LockTimeoutError(LockhubError):
    """A blocking acquisition gave up before the lock became free."""

    def __init__(self, key: str, timeout_ms: int) -> None:
        super().__init__(f"Timeout: {key} still locked after {timeout_ms}ms")
        self.key = key
        self.timeout_ms = timeout_ms
