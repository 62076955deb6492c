from unittest.mock import AsyncMock

import anyio
import pytest

from src.platform.exception.exceptions import TransientStoreError, ValidationError
from src.platform.utils.retry import retry_with_backoff
from src.service.hostel.app.command.side_effect_dispatcher import SideEffectDispatcher


class TestRetryWithBackoff:
    @pytest.mark.asyncio
    async def test_returns_first_success(self) -> None:
        func = AsyncMock(side_effect=[TransientStoreError('down'), 'ok'])

        result = await retry_with_backoff(
            func, 1, description='lock store read', base_delay=0, key='k'
        )

        assert result == 'ok'
        assert func.await_count == 2
        func.assert_awaited_with(1, key='k')

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        func = AsyncMock(side_effect=TransientStoreError('down'))

        with pytest.raises(TransientStoreError):
            await retry_with_backoff(func, description='lock store read', max_attempts=4, base_delay=0)
        assert func.await_count == 4

    @pytest.mark.asyncio
    async def test_business_errors_are_not_retried(self) -> None:
        func = AsyncMock(side_effect=ValidationError('bad'))

        with pytest.raises(ValidationError):
            await retry_with_backoff(func, description='lock store read', base_delay=0)
        assert func.await_count == 1


class TestSideEffectDispatcher:
    @pytest.mark.asyncio
    async def test_inline_failure_is_swallowed(self) -> None:
        func = AsyncMock(side_effect=TransientStoreError('down'))

        await SideEffectDispatcher().dispatch('notify', func, booking_id='b1')

        assert func.await_count == 3
        func.assert_awaited_with(booking_id='b1')

    @pytest.mark.asyncio
    async def test_unexpected_error_is_logged_not_raised(self) -> None:
        func = AsyncMock(side_effect=RuntimeError('boom'))

        await SideEffectDispatcher().dispatch('notify', func)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_task_group_runs_in_background(self) -> None:
        started = anyio.Event()
        release = anyio.Event()
        finished: list[str] = []

        async def slow_effect(*, name: str) -> None:
            started.set()
            await release.wait()
            finished.append(name)

        async with anyio.create_task_group() as tg:
            dispatcher = SideEffectDispatcher(task_group=tg)
            await dispatcher.dispatch('slow', slow_effect, name='sync-sheet')
            # dispatch returned before the effect completed
            assert finished == []
            await started.wait()
            release.set()

        assert finished == ['sync-sheet']
