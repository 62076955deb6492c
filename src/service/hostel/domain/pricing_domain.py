"""
Pricing Domain

Group discount, seasonal multiplier and deposit split. All money is Decimal,
rounded to cents with ROUND_HALF_UP at every step.
"""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import List, Optional, Sequence

import attrs

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.domain.entity.room_entity import RoomCatalog
from src.service.hostel.domain.value_object.bed_selection import BedSelection, group_by_room


CENT = Decimal('0.01')


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class SeasonType(StrEnum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CARNIVAL = 'carnival'


SEASON_MULTIPLIERS: dict[SeasonType, Decimal] = {
    SeasonType.LOW: Decimal('0.80'),
    SeasonType.MEDIUM: Decimal('1.00'),
    SeasonType.HIGH: Decimal('1.50'),
    SeasonType.CARNIVAL: Decimal('2.00'),
}

_MONTH_SEASONS: dict[int, SeasonType] = {
    12: SeasonType.HIGH,
    1: SeasonType.HIGH,
    2: SeasonType.HIGH,
    3: SeasonType.HIGH,
    4: SeasonType.MEDIUM,
    5: SeasonType.MEDIUM,
    6: SeasonType.LOW,
    7: SeasonType.LOW,
    8: SeasonType.LOW,
    9: SeasonType.LOW,
    10: SeasonType.MEDIUM,
    11: SeasonType.MEDIUM,
}

# (minimum beds, discount), largest tier first
GROUP_DISCOUNT_TIERS: tuple[tuple[int, Decimal], ...] = (
    (26, Decimal('0.20')),
    (16, Decimal('0.15')),
    (7, Decimal('0.10')),
)


@attrs.define(frozen=True)
class RoomPriceLine:
    room_id: int
    beds: int
    price_per_bed_night: Decimal
    subtotal: Decimal


@attrs.define(frozen=True)
class PriceQuote:
    total_beds: int
    nights: int
    base_price: Decimal
    discount_rate: Decimal
    discount_amount: Decimal
    after_discount: Decimal
    season: SeasonType
    season_multiplier: Decimal
    total_price: Decimal
    lines: List[RoomPriceLine] = attrs.field(factory=list)


@attrs.define(frozen=True)
class DepositSplit:
    total: Decimal
    deposit_rate: Decimal
    deposit_amount: Decimal
    remaining_amount: Decimal
    balance_due_date: Optional[date] = None


class PricingEngine:
    def __init__(
        self,
        *,
        room_catalog: RoomCatalog,
        carnival_periods: Optional[Sequence[tuple[date, date]]] = None,
    ) -> None:
        self.room_catalog = room_catalog
        self.carnival_periods = (
            list(carnival_periods)
            if carnival_periods is not None
            else settings.CARNIVAL_DATE_RANGES
        )

    @staticmethod
    def group_discount(total_beds: int) -> Decimal:
        for min_beds, discount in GROUP_DISCOUNT_TIERS:
            if total_beds >= min_beds:
                return discount
        return Decimal('0.00')

    def is_carnival(self, check_in: date) -> bool:
        return any(start <= check_in <= end for start, end in self.carnival_periods)

    def season_for(self, check_in: date) -> SeasonType:
        """Season is decided by the check-in date alone, even across a season boundary."""
        if self.is_carnival(check_in):
            return SeasonType.CARNIVAL
        return _MONTH_SEASONS[check_in.month]

    def season_multiplier(self, check_in: date) -> Decimal:
        return SEASON_MULTIPLIERS[self.season_for(check_in)]

    def validate_carnival_stay(self, check_in: date, nights: int) -> None:
        if self.is_carnival(check_in) and nights < settings.CARNIVAL_MIN_NIGHTS:
            raise ValidationError(
                f'Carnival bookings require a minimum stay of {settings.CARNIVAL_MIN_NIGHTS} nights'
            )

    @Logger.io
    def calculate_price(
        self, beds: List[BedSelection], nights: int, check_in: date
    ) -> PriceQuote:
        if not beds:
            raise ValidationError('At least one bed is required for pricing')
        if nights <= 0:
            raise ValidationError('Stay must be at least one night')
        self.validate_carnival_stay(check_in, nights)

        lines: list[RoomPriceLine] = []
        for room_id, bed_numbers in group_by_room(beds).items():
            room = self.room_catalog.get(room_id)
            subtotal = round_money(len(bed_numbers) * room.base_price * nights)
            lines.append(
                RoomPriceLine(
                    room_id=room_id,
                    beds=len(bed_numbers),
                    price_per_bed_night=room.base_price,
                    subtotal=subtotal,
                )
            )

        base = round_money(sum((line.subtotal for line in lines), Decimal('0')))
        discount_rate = self.group_discount(len(beds))
        after_discount = round_money(base * (Decimal('1') - discount_rate))
        season = self.season_for(check_in)
        multiplier = SEASON_MULTIPLIERS[season]

        return PriceQuote(
            total_beds=len(beds),
            nights=nights,
            base_price=base,
            discount_rate=discount_rate,
            discount_amount=base - after_discount,
            after_discount=after_discount,
            season=season,
            season_multiplier=multiplier,
            total_price=round_money(after_discount * multiplier),
            lines=lines,
        )

    @Logger.io
    def calculate_deposit(
        self, total: Decimal, total_people: int, check_in: Optional[date] = None
    ) -> DepositSplit:
        if total < 0:
            raise ValidationError('Total price cannot be negative')

        rate = (
            settings.LARGE_GROUP_DEPOSIT_RATE
            if total_people >= settings.LARGE_GROUP_DEPOSIT_THRESHOLD
            else settings.STANDARD_DEPOSIT_RATE
        )
        deposit = round_money(total * rate)
        balance_due = (
            check_in - timedelta(days=settings.BALANCE_CHARGE_DAYS_BEFORE) if check_in else None
        )
        return DepositSplit(
            total=round_money(total),
            deposit_rate=rate,
            deposit_amount=deposit,
            remaining_amount=round_money(total - deposit),
            balance_due_date=balance_due,
        )
