"""
In-memory collaborators for hostel unit tests.

InMemoryLockStore mirrors the Kvrocks semantics the hold manager relies on
(SET NX EX, compare-and-delete, compare-and-set, prefix scan) with a controllable clock.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from uuid_utils import UUID, uuid7

from src.platform.exception.exceptions import ConflictError, TransientStoreError
from src.service.hostel.app.interface.i_advisory_lock_store import IAdvisoryLockStore
from src.service.hostel.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.app.interface.i_external_calendar_provider import (
    IExternalCalendarProvider,
)
from src.service.hostel.app.interface.i_guest_repo import IGuestRepo
from src.service.hostel.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.hostel.domain.entity.booking_entity import Booking
from src.service.hostel.domain.entity.guest_entity import Guest, normalize_email
from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.domain.value_object.external_block import ExternalBlock


T0 = datetime(2030, 6, 1, 15, 0, tzinfo=timezone.utc)


class InMemoryLockStore(IAdvisoryLockStore):
    def __init__(self, *, now: datetime = T0) -> None:
        self.now = now
        self._data: dict[str, tuple[str, datetime]] = {}
        self.fail_after_sets: Optional[int] = None
        self._sets = 0

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)

    def _live(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self.now:
            del self._data[key]
            return None
        return value

    def keys(self) -> list[str]:
        return sorted(k for k in list(self._data) if self._live(k) is not None)

    async def get(self, *, key: str) -> Optional[str]:
        return self._live(key)

    async def get_many(self, *, keys: List[str]) -> List[Optional[str]]:
        return [self._live(k) for k in keys]

    async def set(
        self, *, key: str, value: str, ttl_seconds: int, only_if_absent: bool = False
    ) -> bool:
        self._sets += 1
        if self.fail_after_sets is not None and self._sets > self.fail_after_sets:
            raise TransientStoreError('lock store went away')
        if only_if_absent and self._live(key) is not None:
            return False
        self._data[key] = (value, self.now + timedelta(seconds=ttl_seconds))
        return True

    async def delete(self, *, keys: List[str]) -> int:
        deleted = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                deleted += 1
        return deleted

    async def delete_if_value(self, *, key: str, value: str) -> bool:
        if self._live(key) == value:
            del self._data[key]
            return True
        return False

    async def compare_and_set(
        self, *, key: str, expected: str, value: str, ttl_seconds: int
    ) -> bool:
        if self._live(key) != expected:
            return False
        self._data[key] = (value, self.now + timedelta(seconds=ttl_seconds))
        return True

    async def list_keys(self, *, prefix: str) -> List[str]:
        return [k for k in self.keys() if k.startswith(prefix)]


class InMemoryBookingRepo(IBookingRepo):
    def __init__(self, bookings: Optional[List[Booking]] = None) -> None:
        self.bookings: Dict[UUID, Booking] = {b.id: b for b in bookings or []}

    async def create_booking(self, *, booking: Booking) -> Booking:
        requested = set(booking.bed_selections)
        for existing in self.bookings.values():
            if not existing.is_occupying or not existing.overlaps(
                booking.check_in, booking.check_out
            ):
                continue
            clash = sorted(requested & set(existing.bed_selections))
            if clash:
                raise ConflictError('Beds already booked', conflicting_beds=clash)
        self.bookings[booking.id] = booking
        return booking

    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        return self.bookings.get(booking_id)

    async def update_booking(self, *, booking: Booking) -> Booking:
        self.bookings[booking.id] = booking
        return booking

    async def list_occupying_overlapping(self, *, start: date, end: date) -> List[Booking]:
        return [
            b for b in self.bookings.values() if b.is_occupying and b.overlaps(start, end)
        ]


class InMemoryGuestRepo(IGuestRepo):
    def __init__(self) -> None:
        self.guests: Dict[str, Guest] = {}

    async def get_by_id(self, *, guest_id: UUID) -> Optional[Guest]:
        return next((g for g in self.guests.values() if g.id == guest_id), None)

    async def get_by_email(self, *, email: str) -> Optional[Guest]:
        return self.guests.get(normalize_email(email))

    async def upsert_by_email(self, *, guest: Guest) -> Guest:
        email = normalize_email(guest.email)
        existing = self.guests.get(email)
        stored = existing.update_contact(name=guest.name, phone=guest.phone) if existing else guest
        self.guests[email] = stored
        return stored


class StaticCalendarProvider(IExternalCalendarProvider):
    def __init__(self, blocks: Optional[List[ExternalBlock]] = None) -> None:
        self.blocks = list(blocks or [])

    async def list_blocks(self, *, start: date, end: date) -> List[ExternalBlock]:
        return [b for b in self.blocks if b.overlaps(start, end)]


class RecordingEventPublisher(IBookingEventPublisher):
    def __init__(self, *, failures: int = 0) -> None:
        self.events: list[BookingDomainEvent] = []
        self.calls = 0
        self._failures = failures

    async def _record(self, event: BookingDomainEvent) -> None:
        self.calls += 1
        if self.calls <= self._failures:
            raise TransientStoreError('pubsub unavailable')
        self.events.append(event)

    async def publish_booking_created(self, *, event: BookingDomainEvent) -> None:
        await self._record(event)

    async def publish_payment_confirmed(self, *, event: BookingDomainEvent) -> None:
        await self._record(event)

    async def publish_booking_cancelled(self, *, event: BookingDomainEvent) -> None:
        await self._record(event)


def make_booking(
    *,
    beds: List[tuple[int, int]],
    check_in: date,
    check_out: date,
    men: Optional[int] = None,
    women: int = 0,
    total_price: str = '300.00',
    hold_id: Optional[str] = None,
) -> Booking:
    selections = [BedSelection(room_id=r, bed_number=n) for r, n in beds]
    if men is None:
        men = len(selections) - women
    return Booking.create(
        guest_id=uuid7(),
        check_in=check_in,
        check_out=check_out,
        men=men,
        women=women,
        bed_selections=selections,
        total_price=Decimal(total_price),
        deposit_amount=Decimal('0.00'),
        remaining_amount=Decimal(total_price),
        hold_id=hold_id,
    )
