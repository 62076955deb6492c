from datetime import datetime
from typing import Optional

from opentelemetry import trace

from src.platform.exception.exceptions import (
    ConflictError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.command.hold_manager import HoldManager
from src.service.hostel.app.command.side_effect_dispatcher import SideEffectDispatcher
from src.service.hostel.app.dto.create_booking_request import CreateBookingRequest
from src.service.hostel.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.app.interface.i_guest_repo import IGuestRepo
from src.service.hostel.app.query.inventory_resolver import InventoryResolver
from src.service.hostel.domain.allocation_domain import AllocationValidator
from src.service.hostel.domain.domain_event.booking_domain_event import BookingDomainEvent
from src.service.hostel.domain.entity.booking_entity import Booking
from src.service.hostel.domain.entity.guest_entity import Guest
from src.service.hostel.domain.pricing_domain import PricingEngine, SeasonType
from src.service.hostel.domain.stay_policy import property_today, validate_stay_dates


class CreateBookingUseCase:
    """
    Create booking use case

    Flow:
    1. Validate stay dates and guest details
    2. Read occupancy for the range, excluding the guest's own hold
    3. Validate the bed selection against gender and capacity rules
    4. Price the stay and split the deposit
    5. Re-verify availability (final race guard)
    6. Upsert guest by email, persist booking + bed assignments atomically
    7. Confirm the guest's hold once the write is acknowledged
    8. Publish booking-created as a post-commit side effect
    """

    def __init__(
        self,
        *,
        booking_repo: IBookingRepo,
        guest_repo: IGuestRepo,
        inventory_resolver: InventoryResolver,
        hold_manager: HoldManager,
        allocation_validator: AllocationValidator,
        pricing_engine: PricingEngine,
        event_publisher: IBookingEventPublisher,
        side_effects: SideEffectDispatcher,
    ) -> None:
        self.booking_repo = booking_repo
        self.guest_repo = guest_repo
        self.inventory_resolver = inventory_resolver
        self.hold_manager = hold_manager
        self.allocation_validator = allocation_validator
        self.pricing_engine = pricing_engine
        self.event_publisher = event_publisher
        self.side_effects = side_effects
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def create_booking(
        self, *, request: CreateBookingRequest, now: Optional[datetime] = None
    ) -> Booking:
        """
        Raises:
            ValidationError: bad dates, guest details or bed selection
            ConflictError: a requested bed is taken
            TransientStoreError: booking store unreachable (not retried here)
        """
        with self.tracer.start_as_current_span(
            'use_case.create_booking',
            attributes={
                'booking.check_in': request.check_in.isoformat(),
                'booking.check_out': request.check_out.isoformat(),
                'booking.guests': request.total_guests,
            },
        ):
            # Step 1: pure checks before any I/O
            stay = validate_stay_dates(
                check_in=request.check_in,
                check_out=request.check_out,
                today=property_today(now),
                is_carnival=self.pricing_engine.is_carnival(request.check_in),
            )
            guest_candidate = Guest.create(
                name=request.guest_name, email=request.guest_email, phone=request.guest_phone
            )

            # Step 2-3: occupancy + bed selection rules
            snapshot = await self.inventory_resolver.get_occupancy(
                start=stay.check_in, end=stay.check_out, exclude_hold_id=request.hold_id, now=now
            )
            policies = await self.inventory_resolver.resolve_room_policies(
                start=stay.check_in, end=stay.check_out, now=now
            )
            result = self.allocation_validator.validate_bed_selection(
                request.bed_selections,
                request.men,
                request.women,
                snapshot,
                policies=policies,
            )
            if not result.valid:
                if result.has_conflict:
                    raise ConflictError(
                        '; '.join(result.errors), conflicting_beds=result.conflicting_beds
                    )
                raise ValidationError('Invalid bed selection', errors=result.errors)

            # Step 4: price
            quote = self.pricing_engine.calculate_price(
                request.bed_selections, stay.nights, stay.check_in
            )
            deposit = self.pricing_engine.calculate_deposit(
                quote.total_price, request.total_guests, stay.check_in
            )

            # Step 5: final guard right before the write
            if not await self.inventory_resolver.verify_beds_available(
                beds=request.bed_selections,
                start=stay.check_in,
                end=stay.check_out,
                exclude_hold_id=request.hold_id,
            ):
                raise ConflictError('Selected beds are no longer available')

            # Step 6: durable write
            guest = await self.guest_repo.upsert_by_email(guest=guest_candidate)
            booking = Booking.create(
                guest_id=guest.id,
                check_in=stay.check_in,
                check_out=stay.check_out,
                men=request.men,
                women=request.women,
                bed_selections=request.bed_selections,
                total_price=quote.total_price,
                deposit_amount=deposit.deposit_amount,
                remaining_amount=deposit.remaining_amount,
                balance_due_date=deposit.balance_due_date,
                is_carnival=quote.season == SeasonType.CARNIVAL,
                hold_id=request.hold_id,
            )
            booking = await self.booking_repo.create_booking(booking=booking)
            Logger.base.info(
                f'📝 [CREATE-BOOKING] {booking.id}: {len(booking.bed_selections)} beds '
                f'{booking.check_in}→{booking.check_out}, total {booking.total_price}'
            )

            # Step 7: the booking now protects the beds
            if request.hold_id:
                try:
                    await self.hold_manager.confirm_hold(
                        hold_id=request.hold_id, payment_status=str(booking.payment_status)
                    )
                except (NotFoundError, ConflictError, TransientStoreError) as e:
                    Logger.base.warning(
                        f'⚠️ [CREATE-BOOKING] Hold {request.hold_id} not confirmed for {booking.id}: {e}'
                    )

            # Step 8: fire-and-forget
            await self.side_effects.dispatch(
                f'publish booking_created {booking.id}',
                self.event_publisher.publish_booking_created,
                event=BookingDomainEvent.booking_created(booking=booking),
            )
            return booking
