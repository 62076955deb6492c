import attrs

from src.service.hostel.domain.pricing_domain import DepositSplit, PriceQuote


@attrs.define(frozen=True)
class BookingQuote:
    """Price and deposit for a prospective booking; nothing is written."""

    price: PriceQuote
    deposit: DepositSplit
