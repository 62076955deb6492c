"""
Booking Domain Events

Published after the booking store acknowledges a write. Consumers
(notifications, sheet sync) receive a snapshot and never call back into
the booking flow.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Any, Optional

import attrs

from src.service.hostel.domain.entity.booking_entity import Booking


class BookingEventType(StrEnum):
    BOOKING_CREATED = 'booking_created'
    PAYMENT_CONFIRMED = 'payment_confirmed'
    BOOKING_CANCELLED = 'booking_cancelled'


def booking_snapshot(booking: Booking) -> dict[str, Any]:
    return {
        'booking_id': str(booking.id),
        'guest_id': str(booking.guest_id),
        'check_in': booking.check_in.isoformat(),
        'check_out': booking.check_out.isoformat(),
        'men': booking.men,
        'women': booking.women,
        'beds': [bed.bed_id for bed in booking.bed_selections],
        'total_price': str(booking.total_price),
        'deposit_amount': str(booking.deposit_amount),
        'remaining_amount': str(booking.remaining_amount),
        'amount_paid': str(booking.amount_paid),
        'status': str(booking.status),
        'payment_status': str(booking.payment_status),
    }


@attrs.define
class BookingDomainEvent:
    event_type: BookingEventType
    booking: dict[str, Any]
    occurred_at: datetime = attrs.field(factory=lambda: datetime.now(timezone.utc))
    refund_amount: Optional[Decimal] = None

    @classmethod
    def booking_created(cls, *, booking: Booking) -> 'BookingDomainEvent':
        return cls(event_type=BookingEventType.BOOKING_CREATED, booking=booking_snapshot(booking))

    @classmethod
    def payment_confirmed(cls, *, booking: Booking) -> 'BookingDomainEvent':
        return cls(
            event_type=BookingEventType.PAYMENT_CONFIRMED, booking=booking_snapshot(booking)
        )

    @classmethod
    def booking_cancelled(cls, *, booking: Booking) -> 'BookingDomainEvent':
        return cls(
            event_type=BookingEventType.BOOKING_CANCELLED,
            booking=booking_snapshot(booking),
            refund_amount=booking.refund_amount,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'event_type': str(self.event_type),
            'occurred_at': self.occurred_at.isoformat(),
            'booking': self.booking,
        }
        if self.refund_amount is not None:
            data['refund_amount'] = str(self.refund_amount)
        return data
