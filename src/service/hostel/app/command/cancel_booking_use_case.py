from datetime import datetime, timezone
from typing import Optional

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import NotFoundError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.command.side_effect_dispatcher import SideEffectDispatcher
from src.service.hostel.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.domain.cancellation_policy import CancellationPolicy
from src.service.hostel.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.hostel.domain.entity.booking_entity import Booking
from src.service.hostel.domain.stay_policy import property_today


class CancelBookingUseCase:
    def __init__(
        self,
        *,
        booking_repo: IBookingRepo,
        cancellation_policy: CancellationPolicy,
        event_publisher: IBookingEventPublisher,
        side_effects: SideEffectDispatcher,
    ) -> None:
        self.booking_repo = booking_repo
        self.cancellation_policy = cancellation_policy
        self.event_publisher = event_publisher
        self.side_effects = side_effects
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def cancel_booking(
        self,
        *,
        booking_id: UUID,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Cancel a booking and compute its refund from the days left before check-in.

        Raises:
            NotFoundError: booking absent
            ValidationError: already cancelled, guest arrived, or check-in date passed
        """
        with self.tracer.start_as_current_span(
            'use_case.cancel_booking', attributes={'booking.id': str(booking_id)}
        ):
            booking = await self.booking_repo.get_by_id(booking_id=booking_id)
            if booking is None:
                raise NotFoundError(f'Booking {booking_id} not found')

            now = now or datetime.now(timezone.utc)
            today = property_today(now)
            if today > booking.check_in:
                raise ValidationError('Cannot cancel a booking after its check-in date')

            decision = self.cancellation_policy.calculate_refund(
                amount_paid=booking.amount_paid,
                check_in=booking.check_in,
                cancelled_on=today,
                is_carnival=booking.is_carnival,
            )
            cancelled = booking.cancel(
                refund_amount=decision.refund_amount, reason=reason, now=now
            )
            cancelled = await self.booking_repo.update_booking(booking=cancelled)
            Logger.base.info(
                f'🚫 [CANCEL-BOOKING] {booking_id}: tier={decision.tier} '
                f'days_before={decision.days_before_check_in} refund={decision.refund_amount}'
            )

            await self.side_effects.dispatch(
                f'publish booking_cancelled {booking_id}',
                self.event_publisher.publish_booking_cancelled,
                event=BookingDomainEvent.booking_cancelled(booking=cancelled),
            )
            return cancelled
