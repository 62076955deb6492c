from typing import Any, Awaitable, Callable, Optional

from anyio.abc import TaskGroup

from src.platform.logging.loguru_io import Logger
from src.platform.utils.retry import retry_with_backoff


class SideEffectDispatcher:
    """
    Runs post-commit side effects (event publishing, external sync).

    With a task group the call is fire-and-forget; without one it is awaited
    inline. Either way a failure is logged after the bounded retries and never
    reaches the caller.
    """

    def __init__(self, *, task_group: Optional[TaskGroup] = None) -> None:
        self.task_group = task_group

    async def dispatch(
        self, description: str, func: Callable[..., Awaitable[Any]], **kwargs: Any
    ) -> None:
        if self.task_group is not None:
            self.task_group.start_soon(self._run, description, func, kwargs)
        else:
            await self._run(description, func, kwargs)

    async def _run(
        self, description: str, func: Callable[..., Awaitable[Any]], kwargs: dict[str, Any]
    ) -> None:
        try:
            await retry_with_backoff(func, description=description, **kwargs)
        except Exception as e:
            Logger.base.error(f'❌ [SIDE-EFFECT] {description} failed, booking unaffected: {e}')
