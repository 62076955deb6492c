"""
Conftest for hostel unit tests - in-memory fakes only, no PostgreSQL/Kvrocks.
"""

from datetime import date

import pytest

from src.service.hostel.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.hostel.app.command.hold_manager import HoldManager
from src.service.hostel.app.command.side_effect_dispatcher import SideEffectDispatcher
from src.service.hostel.app.query.inventory_resolver import InventoryResolver
from src.service.hostel.domain.allocation_domain import AllocationValidator
from src.service.hostel.domain.entity.room_entity import RoomCatalog
from src.service.hostel.domain.pricing_domain import PricingEngine
from test.service.hostel.unit.fakes import (
    InMemoryBookingRepo,
    InMemoryGuestRepo,
    InMemoryLockStore,
    RecordingEventPublisher,
    StaticCalendarProvider,
)


CARNIVAL_2031 = (date(2031, 2, 21), date(2031, 2, 26))


@pytest.fixture
def room_catalog() -> RoomCatalog:
    return RoomCatalog()


@pytest.fixture
def lock_store() -> InMemoryLockStore:
    return InMemoryLockStore()


@pytest.fixture
def booking_repo() -> InMemoryBookingRepo:
    return InMemoryBookingRepo()


@pytest.fixture
def guest_repo() -> InMemoryGuestRepo:
    return InMemoryGuestRepo()


@pytest.fixture
def calendar_provider() -> StaticCalendarProvider:
    return StaticCalendarProvider()


@pytest.fixture
def event_publisher() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest.fixture
def hold_manager(lock_store: InMemoryLockStore, booking_repo: InMemoryBookingRepo) -> HoldManager:
    return HoldManager(
        lock_store=lock_store, booking_repo=booking_repo, default_ttl_minutes=10, namespace='hold'
    )


@pytest.fixture
def inventory_resolver(
    booking_repo: InMemoryBookingRepo,
    hold_manager: HoldManager,
    calendar_provider: StaticCalendarProvider,
    room_catalog: RoomCatalog,
) -> InventoryResolver:
    return InventoryResolver(
        booking_repo=booking_repo,
        hold_manager=hold_manager,
        calendar_provider=calendar_provider,
        room_catalog=room_catalog,
    )


@pytest.fixture
def allocation_validator(room_catalog: RoomCatalog) -> AllocationValidator:
    return AllocationValidator(room_catalog=room_catalog, gender_group_threshold=31)


@pytest.fixture
def pricing_engine(room_catalog: RoomCatalog) -> PricingEngine:
    return PricingEngine(room_catalog=room_catalog, carnival_periods=[CARNIVAL_2031])


@pytest.fixture
def side_effects() -> SideEffectDispatcher:
    return SideEffectDispatcher()


@pytest.fixture
def create_booking_use_case(
    booking_repo: InMemoryBookingRepo,
    guest_repo: InMemoryGuestRepo,
    inventory_resolver: InventoryResolver,
    hold_manager: HoldManager,
    allocation_validator: AllocationValidator,
    pricing_engine: PricingEngine,
    event_publisher: RecordingEventPublisher,
    side_effects: SideEffectDispatcher,
) -> CreateBookingUseCase:
    return CreateBookingUseCase(
        booking_repo=booking_repo,
        guest_repo=guest_repo,
        inventory_resolver=inventory_resolver,
        hold_manager=hold_manager,
        allocation_validator=allocation_validator,
        pricing_engine=pricing_engine,
        event_publisher=event_publisher,
        side_effects=side_effects,
    )
