"""
https://python-dependency-injector.ets-labs.org/index.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.service.hostel.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.hostel.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.hostel.app.command.hold_manager import HoldManager
from src.service.hostel.app.command.side_effect_dispatcher import SideEffectDispatcher
from src.service.hostel.app.command.update_booking_status_use_case import (
    UpdateBookingStatusUseCase,
)
from src.service.hostel.app.command.update_payment_status_use_case import (
    UpdatePaymentStatusUseCase,
)
from src.service.hostel.app.query.inventory_resolver import InventoryResolver
from src.service.hostel.app.query.quote_price_use_case import QuotePriceUseCase
from src.service.hostel.domain.allocation_domain import AllocationValidator
from src.service.hostel.domain.cancellation_policy import CancellationPolicy
from src.service.hostel.domain.entity.room_entity import RoomCatalog
from src.service.hostel.domain.pricing_domain import PricingEngine
from src.service.hostel.driven_adapter.event.kvrocks_booking_event_publisher import (
    KvrocksBookingEventPublisher,
)
from src.service.hostel.driven_adapter.repo.booking_repo_impl import BookingRepoImpl
from src.service.hostel.driven_adapter.repo.guest_repo_impl import GuestRepoImpl
from src.service.hostel.driven_adapter.state.kvrocks_advisory_lock_store import (
    KvrocksAdvisoryLockStore,
)
from src.service.hostel.driven_adapter.state.kvrocks_external_calendar_provider import (
    KvrocksExternalCalendarProvider,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Background task group (set by the host process lifespan)
    # Used for fire-and-forget side effects like event publishing
    task_group = providers.Object(None)

    # Static room configuration
    room_catalog = providers.Singleton(RoomCatalog)

    # Repositories (stateless - acquire a pooled connection per call)
    booking_repo = providers.Singleton(BookingRepoImpl)
    guest_repo = providers.Singleton(GuestRepoImpl)

    # Kvrocks adapters (resolve the shared client lazily)
    lock_store = providers.Singleton(KvrocksAdvisoryLockStore)
    calendar_provider = providers.Singleton(KvrocksExternalCalendarProvider)
    event_publisher = providers.Singleton(KvrocksBookingEventPublisher)

    side_effects = providers.Factory(SideEffectDispatcher, task_group=task_group)

    # Domain services
    allocation_validator = providers.Singleton(AllocationValidator, room_catalog=room_catalog)
    pricing_engine = providers.Singleton(PricingEngine, room_catalog=room_catalog)
    cancellation_policy = providers.Singleton(CancellationPolicy)

    hold_manager = providers.Singleton(
        HoldManager, lock_store=lock_store, booking_repo=booking_repo
    )
    inventory_resolver = providers.Singleton(
        InventoryResolver,
        booking_repo=booking_repo,
        hold_manager=hold_manager,
        calendar_provider=calendar_provider,
        room_catalog=room_catalog,
    )

    # Use cases
    create_booking_use_case = providers.Factory(
        CreateBookingUseCase,
        booking_repo=booking_repo,
        guest_repo=guest_repo,
        inventory_resolver=inventory_resolver,
        hold_manager=hold_manager,
        allocation_validator=allocation_validator,
        pricing_engine=pricing_engine,
        event_publisher=event_publisher,
        side_effects=side_effects,
    )
    cancel_booking_use_case = providers.Factory(
        CancelBookingUseCase,
        booking_repo=booking_repo,
        cancellation_policy=cancellation_policy,
        event_publisher=event_publisher,
        side_effects=side_effects,
    )
    update_payment_status_use_case = providers.Factory(
        UpdatePaymentStatusUseCase,
        booking_repo=booking_repo,
        hold_manager=hold_manager,
        event_publisher=event_publisher,
        side_effects=side_effects,
    )
    update_booking_status_use_case = providers.Factory(
        UpdateBookingStatusUseCase, booking_repo=booking_repo
    )
    quote_price_use_case = providers.Factory(QuotePriceUseCase, pricing_engine=pricing_engine)


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
