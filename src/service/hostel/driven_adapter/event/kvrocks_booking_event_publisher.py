"""
Kvrocks Booking Event Publisher

Booking lifecycle events go out on a single Pub/Sub channel. Subscribers
(mailer, channel manager sync) switch on ``event_type``.
"""

from typing import Optional

import orjson
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import TransientStoreError
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.hostel.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.hostel.domain.domain_event.booking_domain_event import BookingDomainEvent


class KvrocksBookingEventPublisher(IBookingEventPublisher):
    def __init__(
        self, *, redis_client: Optional[AsyncRedis] = None, channel: Optional[str] = None
    ) -> None:
        self._redis = redis_client
        self.channel = channel or settings.BOOKING_EVENT_CHANNEL

    @property
    def client(self) -> AsyncRedis:
        return self._redis if self._redis is not None else kvrocks_client.get_client()

    async def _publish(self, event: BookingDomainEvent) -> None:
        message = orjson.dumps(event.to_dict(), default=str)
        try:
            receivers = await self.client.publish(self.channel, message)
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'Publishing {event.event_type} failed: {e}') from e
        Logger.base.info(
            f'📡 [PUBLISH] {event.event_type} booking={event.booking.get("booking_id")} '
            f'receivers={receivers}'
        )

    @Logger.io
    async def publish_booking_created(self, *, event: BookingDomainEvent) -> None:
        await self._publish(event)

    @Logger.io
    async def publish_payment_confirmed(self, *, event: BookingDomainEvent) -> None:
        await self._publish(event)

    @Logger.io
    async def publish_booking_cancelled(self, *, event: BookingDomainEvent) -> None:
        await self._publish(event)
