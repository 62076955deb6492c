from decimal import Decimal
from typing import Optional

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    ConflictError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.command.hold_manager import HoldManager
from src.service.hostel.app.command.side_effect_dispatcher import SideEffectDispatcher
from src.service.hostel.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.hostel.domain.entity.booking_entity import Booking, PaymentStatus


class UpdatePaymentStatusUseCase:
    """
    Apply a payment-provider outcome to a booking.

    PAID confirms the booking, confirms its hold (idempotent) and publishes
    payment-confirmed. Repeated deliveries of the same status change nothing.
    """

    def __init__(
        self,
        *,
        booking_repo: IBookingRepo,
        hold_manager: HoldManager,
        event_publisher: IBookingEventPublisher,
        side_effects: SideEffectDispatcher,
    ) -> None:
        self.booking_repo = booking_repo
        self.hold_manager = hold_manager
        self.event_publisher = event_publisher
        self.side_effects = side_effects
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def update_payment_status(
        self,
        *,
        booking_id: UUID,
        payment_status: PaymentStatus,
        amount_paid: Optional[Decimal] = None,
    ) -> Booking:
        with self.tracer.start_as_current_span(
            'use_case.update_payment_status',
            attributes={'booking.id': str(booking_id), 'payment.status': str(payment_status)},
        ):
            if amount_paid is not None and amount_paid < 0:
                raise ValidationError('Amount paid cannot be negative')

            booking = await self.booking_repo.get_by_id(booking_id=booking_id)
            if booking is None:
                raise NotFoundError(f'Booking {booking_id} not found')
            if amount_paid is not None and amount_paid > booking.total_price:
                raise ValidationError(
                    f'Amount paid {amount_paid} exceeds booking total {booking.total_price}'
                )

            updated = booking.apply_payment(payment_status=payment_status, amount_paid=amount_paid)
            if updated is booking:
                return booking
            updated = await self.booking_repo.update_booking(booking=updated)
            Logger.base.info(
                f'💳 [PAYMENT] {booking_id}: {booking.payment_status}→{updated.payment_status}, '
                f'booking {updated.status}'
            )

            if payment_status == PaymentStatus.PAID:
                if updated.hold_id:
                    try:
                        await self.hold_manager.confirm_hold(
                            hold_id=updated.hold_id, payment_status=str(payment_status)
                        )
                    except (NotFoundError, ConflictError, TransientStoreError) as e:
                        Logger.base.warning(
                            f'⚠️ [PAYMENT] Hold {updated.hold_id} not confirmed for {booking_id}: {e}'
                        )
                await self.side_effects.dispatch(
                    f'publish payment_confirmed {booking_id}',
                    self.event_publisher.publish_payment_confirmed,
                    event=BookingDomainEvent.payment_confirmed(booking=updated),
                )
            return updated
