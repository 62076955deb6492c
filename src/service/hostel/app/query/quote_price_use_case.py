from datetime import date
from typing import List

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.dto.booking_quote import BookingQuote
from src.service.hostel.domain.pricing_domain import PricingEngine
from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.domain.value_object.stay_period import StayPeriod


class QuotePriceUseCase:
    def __init__(self, *, pricing_engine: PricingEngine) -> None:
        self.pricing_engine = pricing_engine

    @Logger.io
    def quote(
        self,
        *,
        beds: List[BedSelection],
        check_in: date,
        check_out: date,
        men: int,
        women: int,
    ) -> BookingQuote:
        if len(beds) != men + women:
            raise ValidationError(
                f'Number of beds ({len(beds)}) must match number of guests ({men + women})'
            )
        stay = StayPeriod.of(check_in, check_out)
        price = self.pricing_engine.calculate_price(beds, stay.nights, stay.check_in)
        deposit = self.pricing_engine.calculate_deposit(
            price.total_price, men + women, stay.check_in
        )
        return BookingQuote(price=price, deposit=deposit)
