"""Occupancy Snapshot Value Object"""

from typing import Iterable, Mapping

import attrs

from src.service.hostel.domain.entity.room_entity import Room
from src.service.hostel.domain.value_object.bed_selection import BedSelection


def _normalize(occupied: Mapping[int, Iterable[int]]) -> dict[int, list[int]]:
    return {
        room_id: sorted(set(numbers))
        for room_id, numbers in sorted(occupied.items())
        if numbers
    }


@attrs.define(frozen=True)
class OccupancySnapshot:
    """
    Beds taken for a date range plus aggregate blocks that have no bed mapping.

    occupied: room_id -> sorted distinct bed numbers
    capacity_reductions: room_id -> beds blocked without a known bed number
    """

    occupied: dict[int, list[int]] = attrs.field(factory=dict, converter=_normalize)
    capacity_reductions: dict[int, int] = attrs.field(factory=dict)

    @classmethod
    def coerce(cls, value: 'OccupancySnapshot | Mapping[int, Iterable[int]]') -> 'OccupancySnapshot':
        if isinstance(value, OccupancySnapshot):
            return value
        return cls(occupied=value)

    def occupied_in(self, room_id: int) -> list[int]:
        return self.occupied.get(room_id, [])

    def blocked_in(self, room_id: int) -> int:
        return self.capacity_reductions.get(room_id, 0)

    def is_occupied(self, bed: BedSelection) -> bool:
        return bed.bed_number in self.occupied_in(bed.room_id)

    def available_count(self, room: Room) -> int:
        taken = len([n for n in self.occupied_in(room.id) if 1 <= n <= room.capacity])
        return max(0, room.capacity - taken - self.blocked_in(room.id))

    def free_beds(self, room: Room) -> list[int]:
        """Lowest free bed numbers, trimmed so aggregate blocks are honoured."""
        taken = set(self.occupied_in(room.id))
        free = [n for n in room.bed_numbers if n not in taken]
        return free[: self.available_count(room)]
