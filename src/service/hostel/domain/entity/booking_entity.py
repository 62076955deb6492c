from datetime import date, datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import List, Optional

import attrs
from uuid_utils import UUID, uuid7

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.domain.value_object.stay_period import ranges_overlap


class BookingStatus(StrEnum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CHECKED_IN = 'checked_in'
    CHECKED_OUT = 'checked_out'
    CANCELLED = 'cancelled'


class PaymentStatus(StrEnum):
    PENDING = 'pending'
    PAID = 'paid'
    FAILED = 'failed'
    REFUNDED = 'refunded'


# Bookings in these states hold their beds
OCCUPYING_BOOKING_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN}
)
OCCUPYING_PAYMENT_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PAID})

# FAILED and REFUNDED are terminal
_PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}


@attrs.define
class Booking:
    id: UUID
    guest_id: UUID
    check_in: date
    check_out: date
    men: int
    women: int
    bed_selections: List[BedSelection]
    total_price: Decimal
    deposit_amount: Decimal
    remaining_amount: Decimal
    balance_due_date: Optional[date] = None
    amount_paid: Decimal = Decimal('0.00')
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    is_carnival: bool = False
    hold_id: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        guest_id: UUID,
        check_in: date,
        check_out: date,
        men: int,
        women: int,
        bed_selections: List[BedSelection],
        total_price: Decimal,
        deposit_amount: Decimal,
        remaining_amount: Decimal,
        balance_due_date: Optional[date] = None,
        is_carnival: bool = False,
        hold_id: Optional[str] = None,
    ) -> 'Booking':
        if len(bed_selections) != men + women:
            raise ValidationError(
                f'Number of beds ({len(bed_selections)}) must match number of guests ({men + women})'
            )
        if check_out <= check_in:
            raise ValidationError('Check-out date must be after check-in date')

        now = datetime.now(timezone.utc)
        return cls(
            id=uuid7(),
            guest_id=guest_id,
            check_in=check_in,
            check_out=check_out,
            men=men,
            women=women,
            bed_selections=sorted(bed_selections),
            total_price=total_price,
            deposit_amount=deposit_amount,
            remaining_amount=remaining_amount,
            balance_due_date=balance_due_date,
            is_carnival=is_carnival,
            hold_id=hold_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def total_guests(self) -> int:
        return self.men + self.women

    @property
    def is_occupying(self) -> bool:
        return (
            self.status in OCCUPYING_BOOKING_STATUSES
            and self.payment_status in OCCUPYING_PAYMENT_STATUSES
        )

    @property
    def is_restricted_gender_booking(self) -> bool:
        """Women-only party: keeps a flexible room female-only."""
        return self.men == 0 and self.women > 0

    def overlaps(self, start: date, end: date) -> bool:
        return ranges_overlap(self.check_in, self.check_out, start, end)

    def beds_in_room(self, room_id: int) -> list[int]:
        return [bed.bed_number for bed in self.bed_selections if bed.room_id == room_id]

    @Logger.io
    def apply_payment(
        self, *, payment_status: PaymentStatus, amount_paid: Optional[Decimal] = None
    ) -> 'Booking':
        """
        Apply a payment-provider outcome.

        A repeated status is a no-op (webhooks are redelivered). PAID forces the
        booking to CONFIRMED.

        Raises:
            ValidationError: cancelled booking or transition not allowed
        """
        if payment_status == self.payment_status:
            return self
        if self.status == BookingStatus.CANCELLED and payment_status != PaymentStatus.REFUNDED:
            raise ValidationError('Cannot change payment of a cancelled booking')
        if payment_status not in _PAYMENT_TRANSITIONS[self.payment_status]:
            raise ValidationError(
                f'Payment status cannot change from {self.payment_status} to {payment_status}'
            )

        status = self.status
        if payment_status == PaymentStatus.PAID and status == BookingStatus.PENDING:
            status = BookingStatus.CONFIRMED

        return attrs.evolve(
            self,
            payment_status=payment_status,
            status=status,
            amount_paid=self.amount_paid if amount_paid is None else amount_paid,
            updated_at=datetime.now(timezone.utc),
        )

    @Logger.io
    def check_in_guest(self) -> 'Booking':
        if self.status != BookingStatus.CONFIRMED:
            raise ValidationError(f'Cannot check in a booking with status {self.status}')
        return attrs.evolve(
            self, status=BookingStatus.CHECKED_IN, updated_at=datetime.now(timezone.utc)
        )

    @Logger.io
    def check_out_guest(self) -> 'Booking':
        if self.status != BookingStatus.CHECKED_IN:
            raise ValidationError(f'Cannot check out a booking with status {self.status}')
        return attrs.evolve(
            self, status=BookingStatus.CHECKED_OUT, updated_at=datetime.now(timezone.utc)
        )

    @Logger.io
    def cancel(
        self, *, refund_amount: Decimal, reason: Optional[str] = None, now: Optional[datetime] = None
    ) -> 'Booking':
        """
        Raises:
            ValidationError: booking already cancelled or guest already arrived
        """
        if self.status == BookingStatus.CANCELLED:
            raise ValidationError('Booking already cancelled')
        if self.status in (BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT):
            raise ValidationError(f'Cannot cancel a booking with status {self.status}')

        now = now or datetime.now(timezone.utc)
        payment_status = self.payment_status
        if payment_status in (PaymentStatus.PAID, PaymentStatus.PENDING) and refund_amount > 0:
            payment_status = PaymentStatus.REFUNDED

        return attrs.evolve(
            self,
            status=BookingStatus.CANCELLED,
            payment_status=payment_status,
            refund_amount=refund_amount,
            cancellation_reason=reason,
            cancelled_at=now,
            updated_at=now,
        )
