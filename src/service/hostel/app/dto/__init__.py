from src.service.hostel.app.dto.availability_result import AvailabilityResult, RoomAvailability
from src.service.hostel.app.dto.booking_quote import BookingQuote
from src.service.hostel.app.dto.create_booking_request import CreateBookingRequest

__all__ = ['AvailabilityResult', 'BookingQuote', 'CreateBookingRequest', 'RoomAvailability']
