"""Hostel Domain Value Objects"""

from src.service.hostel.domain.value_object.bed_selection import BedSelection, group_by_room
from src.service.hostel.domain.value_object.external_block import ExternalBlock
from src.service.hostel.domain.value_object.occupancy import OccupancySnapshot
from src.service.hostel.domain.value_object.stay_period import StayPeriod, ranges_overlap

__all__ = [
    'BedSelection',
    'ExternalBlock',
    'OccupancySnapshot',
    'StayPeriod',
    'group_by_room',
    'ranges_overlap',
]
