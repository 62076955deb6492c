"""Stay Period Value Object"""

from datetime import date, timedelta
from typing import Iterator

import attrs

from src.platform.exception.exceptions import ValidationError


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open overlap: the checkout morning is free for the next check-in."""
    return a_start < b_end and b_start < a_end


@attrs.define(frozen=True)
class StayPeriod:
    """[check_in, check_out) in property-local dates"""

    check_in: date
    check_out: date

    @classmethod
    def of(cls, check_in: date, check_out: date) -> 'StayPeriod':
        if check_out <= check_in:
            raise ValidationError('Check-out date must be after check-in date')
        return cls(check_in=check_in, check_out=check_out)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def overlaps(self, start: date, end: date) -> bool:
        return ranges_overlap(self.check_in, self.check_out, start, end)

    def iter_nights(self) -> Iterator[date]:
        for offset in range(self.nights):
            yield self.check_in + timedelta(days=offset)
