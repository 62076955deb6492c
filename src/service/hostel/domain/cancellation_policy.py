from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Optional

import attrs

from src.platform.config.core_setting import settings
from src.service.hostel.domain.pricing_domain import round_money


class RefundTier(StrEnum):
    FULL = 'full'  # more than 30 days out, minus processing fee
    HALF = 'half'  # 15 to 30 days out
    NONE = 'none'  # under 15 days
    CARNIVAL = 'carnival'  # never refundable


@attrs.define(frozen=True)
class RefundDecision:
    tier: RefundTier
    days_before_check_in: int
    refund_rate: Decimal
    processing_fee: Decimal
    refund_amount: Decimal


class CancellationPolicy:
    def __init__(self, *, processing_fee: Optional[Decimal] = None) -> None:
        self.processing_fee = (
            settings.CANCELLATION_PROCESSING_FEE if processing_fee is None else processing_fee
        )

    def calculate_refund(
        self,
        *,
        amount_paid: Decimal,
        check_in: date,
        cancelled_on: date,
        is_carnival: bool,
    ) -> RefundDecision:
        days = (check_in - cancelled_on).days
        zero = Decimal('0.00')

        if is_carnival:
            return RefundDecision(RefundTier.CARNIVAL, days, zero, zero, zero)
        if days > 30:
            refund = max(zero, round_money(amount_paid - self.processing_fee))
            return RefundDecision(RefundTier.FULL, days, Decimal('1.00'), self.processing_fee, refund)
        if days >= 15:
            rate = Decimal('0.50')
            return RefundDecision(RefundTier.HALF, days, rate, zero, round_money(amount_paid * rate))
        return RefundDecision(RefundTier.NONE, days, zero, zero, zero)
