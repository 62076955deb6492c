from uuid_utils import UUID

from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.domain.entity.booking_entity import Booking


class UpdateBookingStatusUseCase:
    """Front-desk transitions: CONFIRMED → CHECKED_IN → CHECKED_OUT"""

    def __init__(self, *, booking_repo: IBookingRepo) -> None:
        self.booking_repo = booking_repo

    async def _get(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repo.get_by_id(booking_id=booking_id)
        if booking is None:
            raise NotFoundError(f'Booking {booking_id} not found')
        return booking

    @Logger.io
    async def check_in(self, *, booking_id: UUID) -> Booking:
        booking = await self._get(booking_id)
        return await self.booking_repo.update_booking(booking=booking.check_in_guest())

    @Logger.io
    async def check_out(self, *, booking_id: UUID) -> Booking:
        booking = await self._get(booking_id)
        return await self.booking_repo.update_booking(booking=booking.check_out_guest())
