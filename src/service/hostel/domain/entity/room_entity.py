from decimal import Decimal
from enum import StrEnum
from typing import Iterable, Optional

import attrs

from src.platform.exception.exceptions import NotFoundError


class GenderPolicy(StrEnum):
    UNRESTRICTED = 'unrestricted'
    FEMALE_ONLY = 'female_only'


@attrs.define(frozen=True)
class Room:
    id: int
    name: str
    capacity: int
    gender_policy: GenderPolicy = GenderPolicy.UNRESTRICTED
    is_flexible: bool = False
    auto_convert_hours: int = 0  # only meaningful for flexible rooms
    base_price: Decimal = Decimal('60.00')

    @property
    def is_restricted(self) -> bool:
        """Configured policy; flexible rooms may relax it at read time."""
        return self.gender_policy != GenderPolicy.UNRESTRICTED

    @property
    def bed_numbers(self) -> range:
        return range(1, self.capacity + 1)


DEFAULT_ROOMS: tuple[Room, ...] = (
    Room(id=1, name='Mixto 12A', capacity=12),
    Room(id=3, name='Mixto 12B', capacity=12),
    Room(id=5, name='Mixto 7', capacity=7),
    Room(
        id=6,
        name='Flexible 7',
        capacity=7,
        gender_policy=GenderPolicy.FEMALE_ONLY,
        is_flexible=True,
        auto_convert_hours=48,
    ),
)


class RoomCatalog:
    """Static per-room configuration of the property."""

    def __init__(self, rooms: Optional[Iterable[Room]] = None) -> None:
        self._rooms: dict[int, Room] = {
            room.id: room for room in (DEFAULT_ROOMS if rooms is None else rooms)
        }

    def get(self, room_id: int) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise NotFoundError(f'Room {room_id} not found')
        return room

    def find(self, room_id: int) -> Optional[Room]:
        return self._rooms.get(room_id)

    def all(self) -> list[Room]:
        return sorted(self._rooms.values(), key=lambda room: room.id)

    @property
    def total_capacity(self) -> int:
        return sum(room.capacity for room in self._rooms.values())

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms
