"""Availability check result DTOs."""

from datetime import date
from typing import List

import attrs

from src.service.hostel.domain.entity.room_entity import GenderPolicy


@attrs.define(frozen=True)
class RoomAvailability:
    room_id: int
    name: str
    capacity: int
    occupied_beds: List[int]
    blocked_beds: int  # aggregate blocks without a bed mapping
    free_beds: List[int]
    gender_policy: GenderPolicy  # effective policy for the requested range

    @property
    def available_count(self) -> int:
        return len(self.free_beds)


@attrs.define(frozen=True)
class AvailabilityResult:
    check_in: date
    check_out: date
    rooms: List[RoomAvailability]

    @property
    def total_available(self) -> int:
        return sum(room.available_count for room in self.rooms)
