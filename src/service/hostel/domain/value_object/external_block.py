"""External Calendar Block Value Object"""

from datetime import date
from typing import Optional

import attrs

from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.domain.value_object.stay_period import ranges_overlap


@attrs.define(frozen=True)
class ExternalBlock:
    """
    Shadow occupancy imported from a third-party calendar (OTA feed).

    Without ``bed_numbers`` the block only reduces the mapped room's aggregate
    capacity by ``bed_count``. Blocks with no ``room_id`` cannot be placed.
    """

    uid: str
    check_in: date
    check_out: date
    source: str
    stale: bool = False
    room_id: Optional[int] = None
    bed_numbers: tuple[int, ...] = ()
    bed_count: int = 1

    @property
    def is_bed_mapped(self) -> bool:
        return self.room_id is not None and bool(self.bed_numbers)

    @property
    def beds(self) -> list[BedSelection]:
        if self.room_id is None:
            return []
        return [BedSelection(room_id=self.room_id, bed_number=n) for n in self.bed_numbers]

    def overlaps(self, start: date, end: date) -> bool:
        return ranges_overlap(self.check_in, self.check_out, start, end)

    def to_dict(self) -> dict:
        return {
            'uid': self.uid,
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat(),
            'source': self.source,
            'stale': self.stale,
            'room_id': self.room_id,
            'bed_numbers': list(self.bed_numbers),
            'bed_count': self.bed_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ExternalBlock':
        room_id = data.get('room_id')
        return cls(
            uid=str(data['uid']),
            check_in=date.fromisoformat(data['check_in']),
            check_out=date.fromisoformat(data['check_out']),
            source=str(data.get('source', 'unknown')),
            stale=bool(data.get('stale', False)),
            room_id=int(room_id) if room_id is not None else None,
            bed_numbers=tuple(int(n) for n in data.get('bed_numbers') or ()),
            bed_count=int(data.get('bed_count', 1)),
        )
