from datetime import date
from typing import List, Optional

import attrs

from src.service.hostel.domain.value_object.bed_selection import BedSelection


@attrs.define(frozen=True)
class CreateBookingRequest:
    check_in: date
    check_out: date
    men: int
    women: int
    bed_selections: List[BedSelection]
    guest_name: str
    guest_email: str
    guest_phone: Optional[str] = None
    hold_id: Optional[str] = None  # the guest's own hold, excluded from occupancy

    @property
    def total_guests(self) -> int:
        return self.men + self.women
