"""Domain Events"""

from src.service.hostel.domain.domain_event.booking_domain_event import (
    BookingDomainEvent,
    BookingEventType,
    booking_snapshot,
)

__all__ = ['BookingDomainEvent', 'BookingEventType', 'booking_snapshot']
