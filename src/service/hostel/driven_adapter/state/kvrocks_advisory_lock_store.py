"""
Kvrocks Advisory Lock Store

Plain string keys with expiry. Every key passes through ``make_key`` so that
parallel test runs stay isolated. Callers always see the unprefixed key.
"""

from typing import List, Optional

from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from src.platform.exception.exceptions import TransientStoreError
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client, make_key
from src.service.hostel.app.interface.i_advisory_lock_store import IAdvisoryLockStore


# Compare-and-delete: only the owner (value) may drop the key
DELETE_IF_VALUE_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


# Compare-and-set: replace the value (with a fresh TTL) only if nobody changed it
COMPARE_AND_SET_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    redis.call('SET', KEYS[1], ARGV[2], 'EX', ARGV[3])
    return 1
end
return 0
"""


def _decode(value) -> Optional[str]:
    if value is None:
        return None
    return value.decode() if isinstance(value, bytes) else value


class KvrocksAdvisoryLockStore(IAdvisoryLockStore):
    def __init__(self, *, redis_client: Optional[AsyncRedis] = None) -> None:
        self._redis = redis_client

    @property
    def client(self) -> AsyncRedis:
        return self._redis if self._redis is not None else kvrocks_client.get_client()

    @Logger.io
    async def get(self, *, key: str) -> Optional[str]:
        try:
            return _decode(await self.client.get(make_key(key)))
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Lock store get failed: {e}') from e

    @Logger.io
    async def get_many(self, *, keys: List[str]) -> List[Optional[str]]:
        if not keys:
            return []
        try:
            values = await self.client.mget([make_key(k) for k in keys])
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Lock store mget failed: {e}') from e
        return [_decode(v) for v in values]

    @Logger.io
    async def set(
        self, *, key: str, value: str, ttl_seconds: int, only_if_absent: bool = False
    ) -> bool:
        try:
            result = await self.client.set(
                make_key(key), value, ex=max(1, int(ttl_seconds)), nx=only_if_absent
            )
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Lock store set failed: {e}') from e
        return bool(result)

    @Logger.io
    async def delete(self, *, keys: List[str]) -> int:
        if not keys:
            return 0
        try:
            return int(await self.client.delete(*[make_key(k) for k in keys]))
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Lock store delete failed: {e}') from e

    @Logger.io
    async def delete_if_value(self, *, key: str, value: str) -> bool:
        try:
            deleted = await self.client.eval(DELETE_IF_VALUE_SCRIPT, 1, make_key(key), value)  # type: ignore
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Lock store delete_if_value failed: {e}') from e
        return bool(deleted)

    @Logger.io
    async def compare_and_set(
        self, *, key: str, expected: str, value: str, ttl_seconds: int
    ) -> bool:
        try:
            swapped = await self.client.eval(  # type: ignore
                COMPARE_AND_SET_SCRIPT, 1, make_key(key), expected, value, max(1, int(ttl_seconds))
            )
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Lock store compare_and_set failed: {e}') from e
        return bool(swapped)

    @Logger.io
    async def list_keys(self, *, prefix: str) -> List[str]:
        store_prefix_len = len(make_key(''))
        keys: list[str] = []
        try:
            async for raw in self.client.scan_iter(match=f'{make_key(prefix)}*', count=500):
                keys.append(_decode(raw)[store_prefix_len:])
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Lock store scan failed: {e}') from e
        return sorted(keys)
