import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import asyncpg
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import TransientStoreError
from src.platform.logging.loguru_io import Logger


# One pool per event loop (the sweep CLI and tests run their own loops)
asyncpg_pools: dict[int, asyncpg.Pool] = {}


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode/encode PostgreSQL uuid columns as uuid_utils.UUID (booking ids are UUID7)"""

    def _uuid_decoder(value: bytes) -> UUID:
        return UUID(bytes=value)

    def _uuid_encoder(value: UUID) -> bytes:
        return value.bytes

    await conn.set_type_codec(
        'uuid',
        encoder=_uuid_encoder,
        decoder=_uuid_decoder,
        schema='pg_catalog',
        format='binary',
    )


async def get_asyncpg_pool() -> asyncpg.Pool:
    loop_id = id(asyncio.get_running_loop())

    if loop_id in asyncpg_pools:
        return asyncpg_pools[loop_id]

    pool = await asyncpg.create_pool(
        settings.DATABASE_DSN,
        min_size=settings.ASYNCPG_POOL_MIN_SIZE,
        max_size=settings.ASYNCPG_POOL_MAX_SIZE,
        command_timeout=settings.ASYNCPG_POOL_COMMAND_TIMEOUT,
        max_inactive_connection_lifetime=settings.ASYNCPG_POOL_MAX_INACTIVE_LIFETIME,
        timeout=settings.ASYNCPG_POOL_TIMEOUT,
        init=_init_connection,
    )
    Logger.base.info(
        f'🗄️ [Pool] Created asyncpg pool (min={settings.ASYNCPG_POOL_MIN_SIZE}, '
        f'max={settings.ASYNCPG_POOL_MAX_SIZE})'
    )
    asyncpg_pools[loop_id] = pool
    return pool


@asynccontextmanager
async def acquire_connection() -> AsyncIterator[asyncpg.Connection]:
    """Pooled connection; connectivity failures surface as TransientStoreError."""
    try:
        async with (await get_asyncpg_pool()).acquire() as conn:
            yield conn
    except (
        asyncpg.PostgresConnectionError,
        asyncpg.InterfaceError,
        asyncpg.TooManyConnectionsError,
        asyncio.TimeoutError,
        OSError,
    ) as e:
        raise TransientStoreError(f'Booking store unavailable: {e}') from e


async def close_asyncpg_pool() -> None:
    """Close the pool bound to the current event loop; other loops keep theirs."""
    loop_id = id(asyncio.get_running_loop())
    pool = asyncpg_pools.pop(loop_id, None)
    if pool is not None:
        await pool.close()
