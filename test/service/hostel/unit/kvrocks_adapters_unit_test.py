"""
Unit tests for the Kvrocks driven adapters (client mocked)
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.platform.exception.exceptions import TransientStoreError
from src.platform.state.kvrocks_client import make_key
from src.service.hostel.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.hostel.domain.value_object.external_block import ExternalBlock
from src.service.hostel.driven_adapter.event.kvrocks_booking_event_publisher import (
    KvrocksBookingEventPublisher,
)
from src.service.hostel.driven_adapter.state.kvrocks_advisory_lock_store import (
    COMPARE_AND_SET_SCRIPT,
    DELETE_IF_VALUE_SCRIPT,
    KvrocksAdvisoryLockStore,
)
from src.service.hostel.driven_adapter.state.kvrocks_external_calendar_provider import (
    KvrocksExternalCalendarProvider,
)
from test.service.hostel.unit.fakes import make_booking


class TestKvrocksAdvisoryLockStore:
    @pytest.fixture
    def redis(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def store(self, redis: AsyncMock) -> KvrocksAdvisoryLockStore:
        return KvrocksAdvisoryLockStore(redis_client=redis)

    @pytest.mark.asyncio
    async def test_set_if_absent_uses_nx_and_ttl(
        self, store: KvrocksAdvisoryLockStore, redis: AsyncMock
    ) -> None:
        redis.set.return_value = None  # NX lost

        ok = await store.set(key='hold:bed:1:1:2030-07-10', value='h1', ttl_seconds=600, only_if_absent=True)

        assert ok is False
        redis.set.assert_awaited_once_with(
            make_key('hold:bed:1:1:2030-07-10'), 'h1', ex=600, nx=True
        )

    @pytest.mark.asyncio
    async def test_get_many_keeps_order(
        self, store: KvrocksAdvisoryLockStore, redis: AsyncMock
    ) -> None:
        redis.mget.return_value = [b'a', None, 'c']

        assert await store.get_many(keys=['k1', 'k2', 'k3']) == ['a', None, 'c']
        assert await store.get_many(keys=[]) == []
        redis.mget.assert_awaited_once_with([make_key('k1'), make_key('k2'), make_key('k3')])

    @pytest.mark.asyncio
    async def test_delete_if_value_runs_compare_and_delete(
        self, store: KvrocksAdvisoryLockStore, redis: AsyncMock
    ) -> None:
        redis.eval.return_value = 1

        assert await store.delete_if_value(key='k', value='h1') is True
        redis.eval.assert_awaited_once_with(DELETE_IF_VALUE_SCRIPT, 1, make_key('k'), 'h1')

    @pytest.mark.asyncio
    async def test_compare_and_set_runs_script_with_ttl(
        self, store: KvrocksAdvisoryLockStore, redis: AsyncMock
    ) -> None:
        redis.eval.return_value = 0  # value changed underneath

        ok = await store.compare_and_set(key='k', expected='old', value='new', ttl_seconds=300)

        assert ok is False
        redis.eval.assert_awaited_once_with(
            COMPARE_AND_SET_SCRIPT, 1, make_key('k'), 'old', 'new', 300
        )

    @pytest.mark.asyncio
    async def test_list_keys_strips_store_prefix(self, redis: AsyncMock) -> None:
        async def scan_iter(match: str, count: int):
            for key in (make_key('hold:record:b'), make_key('hold:record:a')):
                yield key

        redis.scan_iter = MagicMock(side_effect=scan_iter)
        store = KvrocksAdvisoryLockStore(redis_client=redis)

        assert await store.list_keys(prefix='hold:record:') == ['hold:record:a', 'hold:record:b']
        redis.scan_iter.assert_called_once_with(match=f'{make_key("hold:record:")}*', count=500)

    @pytest.mark.asyncio
    async def test_connection_errors_become_transient(
        self, store: KvrocksAdvisoryLockStore, redis: AsyncMock
    ) -> None:
        redis.get.side_effect = RedisConnectionError('refused')

        with pytest.raises(TransientStoreError):
            await store.get(key='k')


class TestKvrocksExternalCalendarProvider:
    BLOCKS = [
        {
            'uid': 'a',
            'check_in': '2030-07-01',
            'check_out': '2030-07-03',
            'source': 'booking.com',
            'room_id': 1,
            'bed_numbers': [3],
        },
        {'uid': 'b', 'check_in': '2030-08-01', 'check_out': '2030-08-03', 'source': 'airbnb'},
        {'uid': 'broken', 'check_in': 'not-a-date', 'check_out': '2030-07-03'},
        {'check_in': '2030-07-01'},
    ]

    @pytest.mark.asyncio
    async def test_filters_by_range_and_skips_malformed(self) -> None:
        redis = AsyncMock()
        redis.get.return_value = orjson.dumps(self.BLOCKS)
        provider = KvrocksExternalCalendarProvider(redis_client=redis, blocks_key='ical:blocks')

        blocks = await provider.list_blocks(start=date(2030, 7, 2), end=date(2030, 7, 10))

        assert [b.uid for b in blocks] == ['a']
        assert blocks[0].bed_numbers == (3,)
        redis.get.assert_awaited_once_with(make_key('ical:blocks'))

    @pytest.mark.asyncio
    async def test_empty_or_corrupt_snapshot(self) -> None:
        redis = AsyncMock()
        provider = KvrocksExternalCalendarProvider(redis_client=redis)

        redis.get.return_value = None
        assert await provider.list_blocks(start=date(2030, 7, 1), end=date(2030, 7, 2)) == []

        redis.get.return_value = b'{not json'
        assert await provider.list_blocks(start=date(2030, 7, 1), end=date(2030, 7, 2)) == []

    @pytest.mark.asyncio
    async def test_store_blocks_writes_snapshot(self) -> None:
        redis = AsyncMock()
        provider = KvrocksExternalCalendarProvider(redis_client=redis, blocks_key='ical:blocks')
        block = ExternalBlock(
            uid='x', check_in=date(2030, 7, 1), check_out=date(2030, 7, 2), source='hostelworld'
        )

        await provider.store_blocks(blocks=[block])

        key, payload = redis.set.await_args.args
        assert key == make_key('ical:blocks')
        assert orjson.loads(payload) == [block.to_dict()]


class TestKvrocksBookingEventPublisher:
    @pytest.mark.asyncio
    async def test_publishes_json_on_channel(self) -> None:
        redis = AsyncMock()
        redis.publish.return_value = 2
        publisher = KvrocksBookingEventPublisher(redis_client=redis, channel='hostel_events')
        booking = make_booking(beds=[(1, 1)], check_in=date(2030, 7, 1), check_out=date(2030, 7, 3))

        await publisher.publish_booking_created(event=BookingDomainEvent.booking_created(booking=booking))

        channel, message = redis.publish.await_args.args
        assert channel == 'hostel_events'
        body = orjson.loads(message)
        assert body['event_type'] == 'booking_created'
        assert body['booking']['booking_id'] == str(booking.id)

    @pytest.mark.asyncio
    async def test_failure_is_transient(self) -> None:
        redis = AsyncMock()
        redis.publish.side_effect = RedisConnectionError('down')
        publisher = KvrocksBookingEventPublisher(redis_client=redis)
        booking = make_booking(beds=[(1, 1)], check_in=date(2030, 7, 1), check_out=date(2030, 7, 3))

        with pytest.raises(TransientStoreError):
            await publisher.publish_payment_confirmed(
                event=BookingDomainEvent.payment_confirmed(booking=booking)
            )
