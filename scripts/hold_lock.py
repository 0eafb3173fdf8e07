"""Claim a member lock (through its group when needed), hold it, then release."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from lockhub.core.errors import LockhubError
from lockhub.core.runtime import LockRuntime
from lockhub.core.settings import load_settings
from lockhub.utils.logging import get_logger


logger = get_logger("HoldLockCLI")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Hold a session lock for a while.")
    parser.add_argument("--config", type=Path, default=Path("config/lockhub.example.yml"), help="Path to service YAML")
    parser.add_argument("--member", help="Member id to lock directly")
    parser.add_argument("--group", help="Group to lock before picking a random member")
    parser.add_argument("--hold-ms", type=int, default=2000, help="How long to keep the locks")
    parser.add_argument("--timeout-ms", type=int, default=None, help="Max wait per lock")
    args = parser.parse_args()

    runtime = LockRuntime(load_settings(args.config))
    await runtime.start()
    try:
        agent = runtime.session_agent(member_id=args.member, group_id=args.group, timeout_ms=args.timeout_ms)
        try:
            async with agent:
                logger.info("Holding %s as %s", ", ".join(agent.owned_locks), agent.holder)
                await asyncio.sleep(args.hold_ms / 1000.0)
        except LockhubError as exc:
            logger.error("%s", exc)
            return 1
    finally:
        await runtime.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
