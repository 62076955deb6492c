import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import TransientStoreError
from src.platform.logging.loguru_io import Logger


_T = TypeVar('_T')


async def retry_with_backoff(
    func: Callable[..., Awaitable[_T]],
    *args: Any,
    description: str,
    max_attempts: int | None = None,
    base_delay: float | None = None,
    retry_on: tuple[type[BaseException], ...] = (TransientStoreError,),
    **kwargs: Any,
) -> _T:
    """
    Await ``func(*args, **kwargs)``, retrying transient failures with exponential backoff.

    Delay doubles each attempt starting at ``base_delay``. The last failure is re-raised.
    """
    attempts = max_attempts or settings.SIDE_EFFECT_MAX_ATTEMPTS
    delay = settings.SIDE_EFFECT_BACKOFF_SECONDS if base_delay is None else base_delay

    for attempt in range(1, attempts + 1):
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt >= attempts:
                raise
            Logger.base.warning(
                f'🔁 [RETRY] {description} failed (attempt {attempt}/{attempts}): {e}'
            )
            await asyncio.sleep(delay * (2 ** (attempt - 1)))

    raise RuntimeError(f'{description}: retry loop exited without result')
