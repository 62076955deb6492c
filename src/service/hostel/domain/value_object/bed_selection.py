"""Bed Selection Value Object"""

from typing import Iterable

import attrs

from src.platform.exception.exceptions import ValidationError


@attrs.define(frozen=True, order=True)
class BedSelection:
    """One physical sleeping slot: (room_id, bed_number)"""

    room_id: int
    bed_number: int

    @property
    def bed_id(self) -> str:
        return f'{self.room_id}-{self.bed_number}'

    @classmethod
    def from_bed_id(cls, bed_id: str) -> 'BedSelection':
        try:
            room_id, bed_number = bed_id.split('-')
            return cls(room_id=int(room_id), bed_number=int(bed_number))
        except ValueError:
            raise ValidationError(f'Invalid bed id format: {bed_id}. Expected: room-bed')

    def to_dict(self) -> dict[str, int]:
        return {'room_id': self.room_id, 'bed_number': self.bed_number}

    @classmethod
    def from_dict(cls, data: dict) -> 'BedSelection':
        return cls(room_id=int(data['room_id']), bed_number=int(data['bed_number']))


def group_by_room(beds: Iterable[BedSelection]) -> dict[int, list[int]]:
    """room_id -> sorted bed numbers"""
    grouped: dict[int, list[int]] = {}
    for bed in beds:
        grouped.setdefault(bed.room_id, []).append(bed.bed_number)
    return {room_id: sorted(numbers) for room_id, numbers in sorted(grouped.items())}
