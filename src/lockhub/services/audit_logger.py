"""Audit trail of lock decisions written as JSON Lines."""

from __future__ import annotations

import asyncio
import datetime as dt
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LockDecision:
    """One grant or refusal made on behalf of a holder."""

    event: str
    key: str
    holder: Optional[str]
    granted: bool
    details: Dict[str, Any] = field(default_factory=dict)
    decided_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    def to_json(self) -> str:
        return json.dumps(
            {
                "decided_at": self.decided_at.isoformat(),
                "event": self.event,
                "key": self.key,
                "holder": self.holder,
                "granted": self.granted,
                "details": self.details,
            },
            ensure_ascii=True,
            default=str,
        )


class AuditLogger:
    """Serializes lock decisions into an append-only file."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        self._write_lock = asyncio.Lock()

    async def record(self, decision: LockDecision) -> None:
        line = decision.to_json() + "\n"
        async with self._write_lock:
            await asyncio.to_thread(self._append, line)

    def _append(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line)
