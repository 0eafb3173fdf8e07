"""Redis-backed lock store using SET NX EX and a compare-and-delete script."""

from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

# release only if token matches
COMPARE_AND_DELETE_LUA = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


class RedisLockStore:
    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @classmethod
    async def connect(cls, url: str, *, socket_timeout: float = 5.0) -> "RedisLockStore":
        """Open a pooled client and verify it answers before handing it out."""
        redis = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        try:
            await redis.ping()
        except Exception:
            await redis.aclose()
            raise
        return cls(redis)

    async def try_set(self, key: str, value: str, ttl: int) -> bool:
        return bool(await self._redis.set(key, value, ex=ttl, nx=True))

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        result = await self._redis.eval(COMPARE_AND_DELETE_LUA, 1, key, expected)
        return int(result) == 1

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()
