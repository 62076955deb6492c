"""
Allocation Domain

Gender and capacity rules for placing a party into dormitory beds.
Pure logic: occupancy and the effective room policies are passed in.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Mapping, Optional
import zoneinfo

import attrs

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ConflictError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.domain.entity.room_entity import GenderPolicy, Room, RoomCatalog
from src.service.hostel.domain.value_object.bed_selection import BedSelection, group_by_room
from src.service.hostel.domain.value_object.occupancy import OccupancySnapshot


@attrs.define(frozen=True)
class AccommodationDecision:
    allowed: bool
    reason: Optional[str] = None


@attrs.define
class SelectionValidationResult:
    valid: bool
    errors: List[str] = attrs.field(factory=list)
    # Beds already taken by a booking, hold or block: a conflict, not a bad request
    conflicting_beds: List[BedSelection] = attrs.field(factory=list)
    over_capacity_rooms: List[int] = attrs.field(factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicting_beds or self.over_capacity_rooms)


def flexible_conversion_time(room: Room, check_in: date) -> datetime:
    """Moment a flexible room may open to mixed groups: check-in midnight minus auto_convert_hours."""
    property_tz = zoneinfo.ZoneInfo(settings.PROPERTY_TIMEZONE)
    check_in_start = datetime.combine(check_in, time.min, tzinfo=property_tz)
    return check_in_start - timedelta(hours=room.auto_convert_hours)


def effective_gender_policy(
    room: Room, *, check_in: date, now: datetime, has_restricted_booking: bool
) -> GenderPolicy:
    """
    Derived on every read, never stored.

    A flexible room keeps its configured restriction while any women-only
    booking overlaps the stay, or until ``auto_convert_hours`` before check-in.
    """
    if not room.is_flexible or has_restricted_booking:
        return room.gender_policy
    if now >= flexible_conversion_time(room, check_in):
        return GenderPolicy.UNRESTRICTED
    return room.gender_policy


class AllocationValidator:
    def __init__(
        self, *, room_catalog: RoomCatalog, gender_group_threshold: Optional[int] = None
    ) -> None:
        self.room_catalog = room_catalog
        self.threshold = (
            settings.GENDER_GROUP_THRESHOLD
            if gender_group_threshold is None
            else gender_group_threshold
        )

    def _policy_of(self, room: Room, policies: Optional[Mapping[int, GenderPolicy]]) -> GenderPolicy:
        if policies and room.id in policies:
            return policies[room.id]
        return room.gender_policy

    def _is_capped(self, policy: GenderPolicy, men: int, women: int) -> bool:
        """Restricted room at/under threshold: beds in room must not exceed women."""
        return policy != GenderPolicy.UNRESTRICTED and men + women <= self.threshold

    def can_accommodate_group(
        self,
        room_id: int,
        men: int,
        women: int,
        *,
        gender_policy: Optional[GenderPolicy] = None,
    ) -> AccommodationDecision:
        room = self.room_catalog.get(room_id)
        policy = gender_policy or room.gender_policy

        if policy == GenderPolicy.UNRESTRICTED:
            return AccommodationDecision(allowed=True)
        if men == 0:
            return AccommodationDecision(allowed=True)
        if men + women > self.threshold:
            return AccommodationDecision(
                allowed=True,
                reason=f'Groups larger than {self.threshold} may use {room.name}',
            )
        return AccommodationDecision(
            allowed=False,
            reason=(
                f'{room.name} is female-only for groups of {self.threshold} or fewer '
                f'(group has {men} men)'
            ),
        )

    @Logger.io
    def validate_bed_selection(
        self,
        beds: List[BedSelection],
        men: int,
        women: int,
        occupied: OccupancySnapshot | Mapping[int, Iterable[int]],
        *,
        policies: Optional[Mapping[int, GenderPolicy]] = None,
    ) -> SelectionValidationResult:
        snapshot = OccupancySnapshot.coerce(occupied)
        result = SelectionValidationResult(valid=True)
        errors = result.errors

        if men < 0 or women < 0:
            errors.append('Guest counts cannot be negative')
        elif men + women == 0:
            errors.append('At least one guest is required')
        if len(beds) != men + women:
            errors.append(
                f'Number of beds ({len(beds)}) must match number of guests ({men + women})'
            )

        seen: set[BedSelection] = set()
        known_beds: list[BedSelection] = []
        for bed in beds:
            room = self.room_catalog.find(bed.room_id)
            if room is None:
                errors.append(f'Room {bed.room_id} does not exist')
                continue
            if not 1 <= bed.bed_number <= room.capacity:
                errors.append(
                    f'Bed {bed.bed_number} is out of range for {room.name} (1-{room.capacity})'
                )
                continue
            if bed in seen:
                errors.append(f'Bed {bed.bed_id} is selected more than once')
                continue
            seen.add(bed)
            known_beds.append(bed)
            if snapshot.is_occupied(bed):
                result.conflicting_beds.append(bed)
                errors.append(f'Bed {bed.bed_number} in {room.name} is not available')

        for room_id, bed_numbers in group_by_room(known_beds).items():
            room = self.room_catalog.get(room_id)
            policy = self._policy_of(room, policies)

            decision = self.can_accommodate_group(room_id, men, women, gender_policy=policy)
            if not decision.allowed:
                errors.append(decision.reason or f'{room.name} cannot accommodate this group')
            elif self._is_capped(policy, men, women) and len(bed_numbers) > women:
                errors.append(
                    f'{room.name} is female-only: {len(bed_numbers)} beds selected '
                    f'but only {women} women in the group'
                )

            taken = set(snapshot.occupied_in(room_id)) | set(bed_numbers)
            if len(taken) + snapshot.blocked_in(room_id) > room.capacity:
                result.over_capacity_rooms.append(room_id)
                errors.append(
                    f'{room.name} has only {snapshot.available_count(room)} beds available'
                )

        result.valid = not errors
        return result

    @Logger.io
    def suggest_bed_distribution(
        self,
        men: int,
        women: int,
        occupied: OccupancySnapshot | Mapping[int, Iterable[int]],
        *,
        policies: Optional[Mapping[int, GenderPolicy]] = None,
    ) -> List[BedSelection]:
        """
        Greedy fill: rooms passing the gender rule, most free beds first (ties by
        lower room id), lowest free bed numbers first.

        Raises:
            ValidationError: no guests requested
            ConflictError: not enough beds for the party
        """
        total = men + women
        if men < 0 or women < 0 or total == 0:
            raise ValidationError('At least one guest is required')

        snapshot = OccupancySnapshot.coerce(occupied)
        candidates: list[tuple[Room, GenderPolicy, list[int]]] = []
        for room in self.room_catalog.all():
            policy = self._policy_of(room, policies)
            if not self.can_accommodate_group(room.id, men, women, gender_policy=policy).allowed:
                continue
            free = snapshot.free_beds(room)
            if free:
                candidates.append((room, policy, free))
        candidates.sort(key=lambda item: (-len(item[2]), item[0].id))

        selection: list[BedSelection] = []
        remaining = total
        women_left_for_restricted = women
        for room, policy, free in candidates:
            if remaining == 0:
                break
            take = min(len(free), remaining)
            if self._is_capped(policy, men, women):
                take = min(take, women_left_for_restricted)
                women_left_for_restricted -= take
            selection.extend(BedSelection(room_id=room.id, bed_number=n) for n in free[:take])
            remaining -= take

        if remaining > 0:
            raise ConflictError(
                f'Not enough beds available for {total} guests ({total - remaining} free)'
            )
        return sorted(selection)
