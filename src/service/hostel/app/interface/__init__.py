"""Hostel application ports"""

from src.service.hostel.app.interface.i_advisory_lock_store import IAdvisoryLockStore
from src.service.hostel.app.interface.i_booking_event_publisher import IBookingEventPublisher
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.app.interface.i_external_calendar_provider import (
    IExternalCalendarProvider,
)
from src.service.hostel.app.interface.i_guest_repo import IGuestRepo

__all__ = [
    'IAdvisoryLockStore',
    'IBookingEventPublisher',
    'IBookingRepo',
    'IExternalCalendarProvider',
    'IGuestRepo',
]
