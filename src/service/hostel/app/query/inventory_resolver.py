"""
Inventory Resolver

Occupied beds for a date range, merged from three sources:
occupying bookings, live holds and external calendar blocks.
"""

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.command.hold_manager import HoldManager
from src.service.hostel.app.dto.availability_result import AvailabilityResult, RoomAvailability
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.app.interface.i_external_calendar_provider import (
    IExternalCalendarProvider,
)
from src.service.hostel.domain.allocation_domain import effective_gender_policy
from src.service.hostel.domain.entity.booking_entity import Booking
from src.service.hostel.domain.entity.room_entity import GenderPolicy, RoomCatalog
from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.domain.value_object.occupancy import OccupancySnapshot


class InventoryResolver:
    def __init__(
        self,
        *,
        booking_repo: IBookingRepo,
        hold_manager: HoldManager,
        calendar_provider: IExternalCalendarProvider,
        room_catalog: RoomCatalog,
    ) -> None:
        self.booking_repo = booking_repo
        self.hold_manager = hold_manager
        self.calendar_provider = calendar_provider
        self.room_catalog = room_catalog

    @staticmethod
    def _check_range(start: date, end: date) -> None:
        if end <= start:
            raise ValidationError('Range end must be after range start')

    async def _occupying_bookings(self, start: date, end: date) -> list[Booking]:
        bookings = await self.booking_repo.list_occupying_overlapping(start=start, end=end)
        return [b for b in bookings if b.is_occupying and b.overlaps(start, end)]

    @Logger.io
    async def get_occupancy(
        self,
        *,
        start: date,
        end: date,
        exclude_hold_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> OccupancySnapshot:
        self._check_range(start, end)
        occupied: dict[int, set[int]] = {}
        reductions: dict[int, int] = {}

        def _add(beds: List[BedSelection]) -> None:
            for bed in beds:
                occupied.setdefault(bed.room_id, set()).add(bed.bed_number)

        for booking in await self._occupying_bookings(start, end):
            _add(booking.bed_selections)

        holds = await self.hold_manager.list_active_holds(start=start, end=end, now=now)
        for hold in holds:
            if hold.id != exclude_hold_id:
                _add(hold.bed_selections)

        for block in await self.calendar_provider.list_blocks(start=start, end=end):
            if not block.overlaps(start, end):
                continue
            if block.stale:
                Logger.base.warning(
                    f'⚠️ [INVENTORY] Stale calendar block {block.uid} from {block.source} still counted'
                )
            if block.room_id is None or block.room_id not in self.room_catalog:
                Logger.base.warning(
                    f'⚠️ [INVENTORY] Calendar block {block.uid} has no known room, ignored'
                )
                continue
            if block.is_bed_mapped:
                _add(block.beds)
            else:
                reductions[block.room_id] = reductions.get(block.room_id, 0) + block.bed_count

        return OccupancySnapshot(
            occupied={room_id: sorted(numbers) for room_id, numbers in occupied.items()},
            capacity_reductions=reductions,
        )

    @Logger.io
    async def get_occupied_beds(self, *, start: date, end: date) -> Dict[int, List[int]]:
        """room_id -> sorted distinct occupied bed numbers"""
        snapshot = await self.get_occupancy(start=start, end=end)
        return snapshot.occupied

    @Logger.io
    async def verify_beds_available(
        self,
        *,
        beds: List[BedSelection],
        start: date,
        end: date,
        exclude_hold_id: Optional[str] = None,
    ) -> bool:
        """Final guard before a commit: re-reads occupancy from every source."""
        snapshot = await self.get_occupancy(start=start, end=end, exclude_hold_id=exclude_hold_id)
        if any(snapshot.is_occupied(bed) for bed in beds):
            return False

        per_room: dict[int, int] = {}
        for bed in beds:
            per_room[bed.room_id] = per_room.get(bed.room_id, 0) + 1
        for room_id, count in per_room.items():
            room = self.room_catalog.find(room_id)
            if room is None or count > snapshot.available_count(room):
                return False
        return True

    @Logger.io
    async def resolve_room_policies(
        self, *, start: date, end: date, now: Optional[datetime] = None
    ) -> Dict[int, GenderPolicy]:
        self._check_range(start, end)
        now = now or datetime.now(timezone.utc)
        bookings = await self._occupying_bookings(start, end)

        policies: dict[int, GenderPolicy] = {}
        for room in self.room_catalog.all():
            has_restricted_booking = any(
                booking.is_restricted_gender_booking and booking.beds_in_room(room.id)
                for booking in bookings
            )
            policies[room.id] = effective_gender_policy(
                room, check_in=start, now=now, has_restricted_booking=has_restricted_booking
            )
        return policies

    @Logger.io
    async def check_availability(
        self, *, start: date, end: date, now: Optional[datetime] = None
    ) -> AvailabilityResult:
        snapshot = await self.get_occupancy(start=start, end=end, now=now)
        policies = await self.resolve_room_policies(start=start, end=end, now=now)

        rooms = [
            RoomAvailability(
                room_id=room.id,
                name=room.name,
                capacity=room.capacity,
                occupied_beds=snapshot.occupied_in(room.id),
                blocked_beds=snapshot.blocked_in(room.id),
                free_beds=snapshot.free_beds(room),
                gender_policy=policies[room.id],
            )
            for room in self.room_catalog.all()
        ]
        return AvailabilityResult(check_in=start, check_out=end, rooms=rooms)
