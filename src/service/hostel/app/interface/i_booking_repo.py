"""
Booking Repository Interface

The durable booking store is the single source of truth for confirmed state.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List

from uuid_utils import UUID

from src.service.hostel.domain.entity.booking_entity import Booking


class IBookingRepo(ABC):
    @abstractmethod
    async def create_booking(self, *, booking: Booking) -> Booking:
        """
        Persist booking and its bed assignments in one transaction.

        Raises:
            ConflictError: a bed assignment collides with another occupying booking
            TransientStoreError: store unreachable
        """
        pass

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        pass

    @abstractmethod
    async def update_booking(self, *, booking: Booking) -> Booking:
        """Persist status, payment and cancellation fields of an existing booking."""
        pass

    @abstractmethod
    async def list_occupying_overlapping(self, *, start: date, end: date) -> List[Booking]:
        """
        Bookings overlapping [start, end) that still hold their beds:
        status in OCCUPYING_BOOKING_STATUSES and payment in OCCUPYING_PAYMENT_STATUSES.
        """
        pass
