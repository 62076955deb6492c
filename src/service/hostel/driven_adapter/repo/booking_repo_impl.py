"""
Booking Repository Implementation (asyncpg, raw SQL)

Booking rows and their bed assignments are written in one transaction. A
per-room transaction advisory lock serializes concurrent writers for the same
room so the overlap re-check inside the transaction is authoritative.
"""

from datetime import date
from typing import List

import asyncpg
import orjson
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import acquire_connection
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.domain.entity.booking_entity import (
    OCCUPYING_BOOKING_STATUSES,
    OCCUPYING_PAYMENT_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from src.service.hostel.domain.value_object.bed_selection import BedSelection


_BOOKING_COLUMNS = """
    b.id, b.guest_id, b.check_in, b.check_out, b.men, b.women,
    b.total_price, b.deposit_amount, b.remaining_amount, b.balance_due_date,
    b.amount_paid, b.status, b.payment_status, b.is_carnival, b.hold_id,
    b.cancelled_at, b.cancellation_reason, b.refund_amount, b.created_at, b.updated_at
"""

_BEDS_AGG = """
    COALESCE(
        json_agg(json_build_object('room_id', bb.room_id, 'bed_number', bb.bed_number))
            FILTER (WHERE bb.room_id IS NOT NULL),
        '[]'
    ) AS beds
"""

_OCCUPYING_STATUSES = [str(s) for s in OCCUPYING_BOOKING_STATUSES]
_OCCUPYING_PAYMENTS = [str(s) for s in OCCUPYING_PAYMENT_STATUSES]


class BookingRepoImpl(IBookingRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Booking:
        beds = row['beds']
        if isinstance(beds, str):
            beds = orjson.loads(beds)
        return Booking(
            id=UUID(str(row['id'])),
            guest_id=UUID(str(row['guest_id'])),
            check_in=row['check_in'],
            check_out=row['check_out'],
            men=row['men'],
            women=row['women'],
            bed_selections=sorted(BedSelection.from_dict(bed) for bed in beds),
            total_price=row['total_price'],
            deposit_amount=row['deposit_amount'],
            remaining_amount=row['remaining_amount'],
            balance_due_date=row['balance_due_date'],
            amount_paid=row['amount_paid'],
            status=BookingStatus(row['status']),
            payment_status=PaymentStatus(row['payment_status']),
            is_carnival=row['is_carnival'],
            hold_id=row['hold_id'],
            cancelled_at=row['cancelled_at'],
            cancellation_reason=row['cancellation_reason'],
            refund_amount=row['refund_amount'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    @Logger.io
    async def create_booking(self, *, booking: Booking) -> Booking:
        room_ids = sorted({bed.room_id for bed in booking.bed_selections})
        async with acquire_connection() as conn:
            async with conn.transaction():
                # Same lock order for every writer: ascending room id
                for room_id in room_ids:
                    await conn.execute(
                        'SELECT pg_advisory_xact_lock($1, $2)', 7001, room_id
                    )

                taken = await conn.fetch(
                    """
                    SELECT DISTINCT bb.room_id, bb.bed_number
                    FROM booking_bed bb
                    JOIN booking b ON b.id = bb.booking_id
                    WHERE b.check_in < $2 AND $1 < b.check_out
                      AND b.status = ANY($3::text[])
                      AND b.payment_status = ANY($4::text[])
                      AND (bb.room_id, bb.bed_number) IN (
                          SELECT * FROM unnest($5::int[], $6::int[])
                      )
                    """,
                    booking.check_in,
                    booking.check_out,
                    _OCCUPYING_STATUSES,
                    _OCCUPYING_PAYMENTS,
                    [bed.room_id for bed in booking.bed_selections],
                    [bed.bed_number for bed in booking.bed_selections],
                )
                if taken:
                    conflicting = sorted(
                        BedSelection(room_id=r['room_id'], bed_number=r['bed_number'])
                        for r in taken
                    )
                    raise ConflictError(
                        f'Beds already booked: {", ".join(b.bed_id for b in conflicting)}',
                        conflicting_beds=conflicting,
                    )

                await conn.execute(
                    """
                    INSERT INTO booking (
                        id, guest_id, check_in, check_out, men, women,
                        total_price, deposit_amount, remaining_amount, balance_due_date,
                        amount_paid, status, payment_status, is_carnival, hold_id,
                        created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, $17)
                    """,
                    booking.id,
                    booking.guest_id,
                    booking.check_in,
                    booking.check_out,
                    booking.men,
                    booking.women,
                    booking.total_price,
                    booking.deposit_amount,
                    booking.remaining_amount,
                    booking.balance_due_date,
                    booking.amount_paid,
                    str(booking.status),
                    str(booking.payment_status),
                    booking.is_carnival,
                    booking.hold_id,
                    booking.created_at,
                    booking.updated_at,
                )
                await conn.executemany(
                    'INSERT INTO booking_bed (booking_id, room_id, bed_number) VALUES ($1, $2, $3)',
                    [(booking.id, bed.room_id, bed.bed_number) for bed in booking.bed_selections],
                )

        return booking

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        booking_uuid = UUID(booking_id) if isinstance(booking_id, str) else booking_id
        async with acquire_connection() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_BOOKING_COLUMNS}, {_BEDS_AGG}
                FROM booking b
                LEFT JOIN booking_bed bb ON bb.booking_id = b.id
                WHERE b.id = $1
                GROUP BY b.id
                """,
                booking_uuid,
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def update_booking(self, *, booking: Booking) -> Booking:
        async with acquire_connection() as conn:
            result = await conn.execute(
                """
                UPDATE booking
                SET status = $2,
                    payment_status = $3,
                    amount_paid = $4,
                    cancelled_at = $5,
                    cancellation_reason = $6,
                    refund_amount = $7,
                    updated_at = $8
                WHERE id = $1
                """,
                booking.id,
                str(booking.status),
                str(booking.payment_status),
                booking.amount_paid,
                booking.cancelled_at,
                booking.cancellation_reason,
                booking.refund_amount,
                booking.updated_at,
            )
        if result == 'UPDATE 0':
            Logger.base.warning(f'⚠️ [BOOKING-REPO] update_booking matched no row for {booking.id}')
        return booking

    @Logger.io
    async def list_occupying_overlapping(self, *, start: date, end: date) -> List[Booking]:
        async with acquire_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_BOOKING_COLUMNS}, {_BEDS_AGG}
                FROM booking b
                LEFT JOIN booking_bed bb ON bb.booking_id = b.id
                WHERE b.check_in < $2 AND $1 < b.check_out
                  AND b.status = ANY($3::text[])
                  AND b.payment_status = ANY($4::text[])
                GROUP BY b.id
                ORDER BY b.check_in, b.id
                """,
                start,
                end,
                _OCCUPYING_STATUSES,
                _OCCUPYING_PAYMENTS,
            )
        return [self._row_to_entity(row) for row in rows]
