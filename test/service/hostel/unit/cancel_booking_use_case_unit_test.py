"""
Unit tests for CancellationPolicy and CancelBookingUseCase
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from uuid_utils import uuid7

from src.platform.exception.exceptions import NotFoundError, ValidationError
from src.service.hostel.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.hostel.app.command.side_effect_dispatcher import SideEffectDispatcher
from src.service.hostel.domain.cancellation_policy import CancellationPolicy, RefundTier
from src.service.hostel.domain.domain_event.booking_domain_event import BookingEventType
from src.service.hostel.domain.entity.booking_entity import BookingStatus, PaymentStatus
from test.service.hostel.unit.fakes import (
    InMemoryBookingRepo,
    RecordingEventPublisher,
    make_booking,
)

CHECK_IN = date(2030, 9, 1)


class TestCancellationPolicy:
    @pytest.fixture
    def policy(self) -> CancellationPolicy:
        return CancellationPolicy(processing_fee=Decimal('10.00'))

    def _refund(self, policy: CancellationPolicy, days_before: int, *, carnival: bool = False):
        return policy.calculate_refund(
            amount_paid=Decimal('200.00'),
            check_in=CHECK_IN,
            cancelled_on=date.fromordinal(CHECK_IN.toordinal() - days_before),
            is_carnival=carnival,
        )

    @pytest.mark.parametrize(
        'days_before,tier,refund',
        [
            (60, RefundTier.FULL, '190.00'),
            (31, RefundTier.FULL, '190.00'),
            (30, RefundTier.HALF, '100.00'),
            (15, RefundTier.HALF, '100.00'),
            (14, RefundTier.NONE, '0.00'),
            (0, RefundTier.NONE, '0.00'),
        ],
    )
    def test_tiers(
        self, policy: CancellationPolicy, days_before: int, tier: RefundTier, refund: str
    ) -> None:
        decision = self._refund(policy, days_before)
        assert decision.tier == tier
        assert decision.days_before_check_in == days_before
        assert decision.refund_amount == Decimal(refund)

    def test_carnival_never_refunds(self, policy: CancellationPolicy) -> None:
        decision = self._refund(policy, 90, carnival=True)
        assert decision.tier == RefundTier.CARNIVAL
        assert decision.refund_amount == Decimal('0.00')

    def test_fee_never_makes_refund_negative(self, policy: CancellationPolicy) -> None:
        decision = policy.calculate_refund(
            amount_paid=Decimal('5.00'), check_in=CHECK_IN, cancelled_on=date(2030, 6, 1), is_carnival=False
        )
        assert decision.refund_amount == Decimal('0.00')


class TestCancelBookingUseCase:
    @pytest.fixture
    def publisher(self) -> RecordingEventPublisher:
        return RecordingEventPublisher()

    @pytest.fixture
    def repo(self) -> InMemoryBookingRepo:
        return InMemoryBookingRepo()

    @pytest.fixture
    def use_case(
        self, repo: InMemoryBookingRepo, publisher: RecordingEventPublisher
    ) -> CancelBookingUseCase:
        return CancelBookingUseCase(
            booking_repo=repo,
            cancellation_policy=CancellationPolicy(processing_fee=Decimal('10.00')),
            event_publisher=publisher,
            side_effects=SideEffectDispatcher(),
        )

    async def _paid_booking(self, repo: InMemoryBookingRepo):
        booking = make_booking(
            beds=[(1, 1)], check_in=CHECK_IN, check_out=date(2030, 9, 4), total_price='180.00'
        ).apply_payment(payment_status=PaymentStatus.PAID, amount_paid=Decimal('180.00'))
        return await repo.create_booking(booking=booking)

    @pytest.mark.asyncio
    async def test_early_cancellation_refunds_minus_fee(
        self,
        use_case: CancelBookingUseCase,
        repo: InMemoryBookingRepo,
        publisher: RecordingEventPublisher,
    ) -> None:
        booking = await self._paid_booking(repo)

        cancelled = await use_case.cancel_booking(
            booking_id=booking.id,
            reason='change of plans',
            now=datetime(2030, 6, 1, 15, tzinfo=timezone.utc),
        )

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.payment_status == PaymentStatus.REFUNDED
        assert cancelled.refund_amount == Decimal('170.00')
        assert cancelled.cancellation_reason == 'change of plans'
        assert not cancelled.is_occupying
        assert publisher.events[0].event_type == BookingEventType.BOOKING_CANCELLED
        assert publisher.events[0].to_dict()['refund_amount'] == '170.00'

    @pytest.mark.asyncio
    async def test_late_cancellation_keeps_payment(
        self, use_case: CancelBookingUseCase, repo: InMemoryBookingRepo
    ) -> None:
        booking = await self._paid_booking(repo)

        cancelled = await use_case.cancel_booking(
            booking_id=booking.id, now=datetime(2030, 8, 25, 15, tzinfo=timezone.utc)
        )

        assert cancelled.refund_amount == Decimal('0.00')
        assert cancelled.payment_status == PaymentStatus.PAID

    @pytest.mark.asyncio
    async def test_after_check_in_date_rejected(
        self, use_case: CancelBookingUseCase, repo: InMemoryBookingRepo
    ) -> None:
        booking = await self._paid_booking(repo)

        with pytest.raises(ValidationError):
            await use_case.cancel_booking(
                booking_id=booking.id, now=datetime(2030, 9, 2, 15, tzinfo=timezone.utc)
            )

    @pytest.mark.asyncio
    async def test_double_cancel_rejected(
        self, use_case: CancelBookingUseCase, repo: InMemoryBookingRepo
    ) -> None:
        booking = await self._paid_booking(repo)
        now = datetime(2030, 6, 1, 15, tzinfo=timezone.utc)
        await use_case.cancel_booking(booking_id=booking.id, now=now)

        with pytest.raises(ValidationError):
            await use_case.cancel_booking(booking_id=booking.id, now=now)

    @pytest.mark.asyncio
    async def test_unknown_booking(self, use_case: CancelBookingUseCase) -> None:
        with pytest.raises(NotFoundError):
            await use_case.cancel_booking(booking_id=uuid7())
