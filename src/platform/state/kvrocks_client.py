import asyncio
import os
from typing import Optional

from redis.asyncio import ConnectionPool as AsyncConnectionPool, Redis as AsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


def make_key(key: str) -> str:
    """Add the configured prefix to a key (tests run against isolated prefixes)"""
    prefix = os.getenv('KVROCKS_KEY_PREFIX', settings.KVROCKS_KEY_PREFIX)
    return f'{prefix}{key}'


class KvrocksClient:
    """
    Async Kvrocks client with connection pool.

    Usage:
        await kvrocks_client.initialize()  # In startup
        client = kvrocks_client.get_client()  # In adapters
    """

    def __init__(self) -> None:
        self._client: Optional[AsyncRedis] = None

    async def initialize(self, *, max_retries: int = 10, retry_delay: float = 1.0) -> AsyncRedis:
        """Initialize connection pool (idempotent), waiting for Kvrocks to come up"""
        if self._client is not None:
            return self._client

        for attempt in range(max_retries):
            try:
                self._client = await self._connect()
                Logger.base.info('✅ Kvrocks connected')
                return self._client
            except RedisConnectionError as e:
                if attempt < max_retries - 1:
                    Logger.base.warning(
                        f'⏳ Waiting for Kvrocks... attempt {attempt + 1}/{max_retries} | {e}'
                    )
                    await asyncio.sleep(retry_delay)
                else:
                    raise

        raise RedisConnectionError('Failed to connect to Kvrocks')

    async def _connect(self) -> AsyncRedis:
        pool = AsyncConnectionPool.from_url(
            f'redis://{settings.KVROCKS_HOST}:{settings.KVROCKS_PORT}/{settings.KVROCKS_DB}',
            password=settings.KVROCKS_PASSWORD if settings.KVROCKS_PASSWORD else None,
            decode_responses=settings.REDIS_DECODE_RESPONSES,
            max_connections=settings.KVROCKS_POOL_MAX_CONNECTIONS,
            socket_timeout=settings.KVROCKS_POOL_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT,
            socket_keepalive=settings.KVROCKS_POOL_SOCKET_KEEPALIVE,
            health_check_interval=settings.KVROCKS_POOL_HEALTH_CHECK_INTERVAL,
        )
        client = AsyncRedis.from_pool(pool)
        await client.ping()  # Fail-fast
        return client

    def get_client(self) -> AsyncRedis:
        if self._client is None:
            raise RuntimeError(
                'Kvrocks client not initialized. '
                'Call await kvrocks_client.initialize() during startup.'
            )
        return self._client

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Global singleton
kvrocks_client = KvrocksClient()
