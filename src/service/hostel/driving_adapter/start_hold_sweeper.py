"""
Standalone Hold Sweeper Entry Point (Async)

Usage:
    PYTHONPATH=$PWD python src/service/hostel/driving_adapter/start_hold_sweeper.py
    PYTHONPATH=$PWD python src/service/hostel/driving_adapter/start_hold_sweeper.py --once

Marks expired holds every HOLD_SWEEP_INTERVAL_SECONDS. Bed-night claims already
lapse on their own TTL; the sweep settles the hold records.
"""

import signal
import sys

import anyio

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client


async def sweep_once() -> list[str]:
    return await container.hold_manager().sweep_expired()


async def run_sweeper(*, interval_seconds: float) -> None:
    while True:
        try:
            await sweep_once()
        except Exception as e:
            # Keep the loop alive; the next tick retries
            Logger.base.exception(f'❌ [Hold Sweeper] Sweep failed: {e}')
        await anyio.sleep(interval_seconds)


async def main(once: bool = False) -> None:
    Logger.base.info('🚀 [Hold Sweeper] Starting...')

    try:
        await kvrocks_client.initialize()
        Logger.base.info('📡 [Hold Sweeper] Kvrocks initialized')
    except Exception as e:
        Logger.base.error(f'❌ [Hold Sweeper] Failed to initialize Kvrocks: {e}')
        raise

    try:
        if once:
            swept = await sweep_once()
            Logger.base.info(f'🧹 [Hold Sweeper] Single pass swept {len(swept)} holds')
            return

        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async with anyio.create_task_group() as tg:

                async def signal_watcher() -> None:
                    async for signum in signals:
                        Logger.base.info(f'🛑 [Hold Sweeper] Received signal {signum}')
                        tg.cancel_scope.cancel()
                        break

                tg.start_soon(signal_watcher)  # type: ignore[arg-type]
                tg.start_soon(  # type: ignore[arg-type]
                    lambda: run_sweeper(interval_seconds=settings.HOLD_SWEEP_INTERVAL_SECONDS)
                )
    finally:
        await kvrocks_client.disconnect()
        Logger.base.info('👋 [Hold Sweeper] Shutdown complete')


def run() -> None:
    anyio.run(main, '--once' in sys.argv[1:])  # type: ignore[arg-type]


if __name__ == '__main__':
    run()
