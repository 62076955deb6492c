"""
Create the booking store schema.

Usage:
    PYTHONPATH=$PWD python src/service/hostel/driving_adapter/init_database.py
"""

import anyio

from src.platform.database.asyncpg_setting import acquire_connection, close_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.hostel.driven_adapter.repo.schema import create_tables


async def main() -> None:
    try:
        async with acquire_connection() as conn:
            await create_tables(conn)
    finally:
        await close_asyncpg_pool()
    Logger.base.info('✅ [Init DB] Schema ready')


def run() -> None:
    anyio.run(main)  # type: ignore[arg-type]


if __name__ == '__main__':
    run()
