from datetime import date, datetime
from typing import Optional
import zoneinfo

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ValidationError
from src.service.hostel.domain.value_object.stay_period import StayPeriod


def property_today(now: Optional[datetime] = None) -> date:
    """Calendar date at the property, which is what check-in dates are expressed in."""
    property_tz = zoneinfo.ZoneInfo(settings.PROPERTY_TIMEZONE)
    if now is None:
        return datetime.now(property_tz).date()
    return now.astimezone(property_tz).date()


def validate_stay_dates(
    *, check_in: date, check_out: date, today: date, is_carnival: bool
) -> StayPeriod:
    """
    Raises:
        ValidationError: carrying every broken rule in ``errors``
    """
    errors: list[str] = []
    nights = (check_out - check_in).days

    if check_in < today:
        errors.append('Check-in date cannot be in the past')
    if nights <= 0:
        errors.append('Check-out date must be after check-in date')
    else:
        if nights < settings.MIN_STAY_NIGHTS:
            errors.append(f'Minimum stay is {settings.MIN_STAY_NIGHTS} nights')
        if nights > settings.MAX_STAY_NIGHTS:
            errors.append(f'Maximum stay is {settings.MAX_STAY_NIGHTS} nights')
        if is_carnival and nights < settings.CARNIVAL_MIN_NIGHTS:
            errors.append(
                f'Carnival bookings require a minimum stay of {settings.CARNIVAL_MIN_NIGHTS} nights'
            )
    if (check_in - today).days > settings.MAX_ADVANCE_BOOKING_DAYS:
        errors.append(
            f'Bookings can be made at most {settings.MAX_ADVANCE_BOOKING_DAYS} days in advance'
        )

    if errors:
        raise ValidationError('; '.join(errors), errors=errors)
    return StayPeriod(check_in=check_in, check_out=check_out)
