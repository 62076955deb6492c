"""
Booking Event Publisher Interface

Use cases depend on this port, not on the Pub/Sub adapter. Callers treat
every publish as a post-commit side effect.
"""

from abc import ABC, abstractmethod

from src.service.hostel.domain.domain_event.booking_domain_event import BookingDomainEvent


class IBookingEventPublisher(ABC):
    @abstractmethod
    async def publish_booking_created(self, *, event: BookingDomainEvent) -> None:
        """
        Raises:
            TransientStoreError: If publishing fails
        """
        pass

    @abstractmethod
    async def publish_payment_confirmed(self, *, event: BookingDomainEvent) -> None:
        pass

    @abstractmethod
    async def publish_booking_cancelled(self, *, event: BookingDomainEvent) -> None:
        pass
