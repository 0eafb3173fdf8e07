"""Group membership resolution injected into lock consumers."""

from __future__ import annotations

from typing import Dict, List, Mapping, Protocol, Sequence

from lockhub.core.errors import UnknownGroupError


class MembershipResolver(Protocol):
    async def resolve(self, group_id: str) -> List[str]:
        """Return the ordered member ids of ``group_id``."""
        ...

    async def groups(self) -> List[str]: ...


class StaticMembershipResolver:
    """Resolver backed by a fixed table, usually loaded from settings."""

    def __init__(self, groups: Mapping[str, Sequence[str]]) -> None:
        self._groups: Dict[str, List[str]] = {group: list(members) for group, members in groups.items()}

    async def resolve(self, group_id: str) -> List[str]:
        try:
            return list(self._groups[group_id])
        except KeyError:
            raise UnknownGroupError(group_id) from None

    async def groups(self) -> List[str]:
        return list(self._groups)
