"""
Unit tests for the asyncpg repositories (connection mocked)
"""

from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from uuid_utils import uuid7

from src.platform.exception.exceptions import ConflictError
from src.service.hostel.domain.entity.booking_entity import BookingStatus, PaymentStatus
from src.service.hostel.domain.entity.guest_entity import Guest
from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.driven_adapter.repo import booking_repo_impl, guest_repo_impl
from src.service.hostel.driven_adapter.repo.booking_repo_impl import BookingRepoImpl
from src.service.hostel.driven_adapter.repo.guest_repo_impl import GuestRepoImpl
from test.service.hostel.unit.fakes import make_booking


def _patch_connection(module, conn: MagicMock):
    @asynccontextmanager
    async def fake_acquire():
        yield conn

    return patch.object(module, 'acquire_connection', fake_acquire)


def _conn() -> MagicMock:
    conn = MagicMock()
    conn.execute = AsyncMock(return_value='INSERT 0 1')
    conn.executemany = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock()
    return conn


class TestBookingRepoImpl:
    def _row(self, **overrides) -> dict:
        now = datetime(2030, 6, 1, tzinfo=timezone.utc)
        row = {
            'id': uuid7(),
            'guest_id': uuid7(),
            'check_in': date(2030, 7, 1),
            'check_out': date(2030, 7, 3),
            'men': 1,
            'women': 1,
            'total_price': Decimal('96.00'),
            'deposit_amount': Decimal('28.80'),
            'remaining_amount': Decimal('67.20'),
            'balance_due_date': date(2030, 6, 24),
            'amount_paid': Decimal('0.00'),
            'status': 'pending',
            'payment_status': 'pending',
            'is_carnival': False,
            'hold_id': None,
            'cancelled_at': None,
            'cancellation_reason': None,
            'refund_amount': None,
            'created_at': now,
            'updated_at': now,
            'beds': '[{"room_id": 3, "bed_number": 2}, {"room_id": 1, "bed_number": 5}]',
        }
        row.update(overrides)
        return row

    def test_row_to_entity_parses_beds_json(self) -> None:
        booking = BookingRepoImpl._row_to_entity(self._row())

        assert booking.bed_selections == [
            BedSelection(room_id=1, bed_number=5),
            BedSelection(room_id=3, bed_number=2),
        ]
        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING

    def test_row_to_entity_accepts_decoded_beds(self) -> None:
        booking = BookingRepoImpl._row_to_entity(self._row(beds=[{'room_id': 5, 'bed_number': 1}]))
        assert booking.bed_selections == [BedSelection(room_id=5, bed_number=1)]

    @pytest.mark.asyncio
    async def test_create_locks_rooms_in_order_and_inserts(self) -> None:
        conn = _conn()
        booking = make_booking(
            beds=[(3, 1), (1, 1)], check_in=date(2030, 7, 1), check_out=date(2030, 7, 3)
        )

        with _patch_connection(booking_repo_impl, conn):
            await BookingRepoImpl().create_booking(booking=booking)

        lock_calls = [c.args for c in conn.execute.await_args_list if 'pg_advisory_xact_lock' in c.args[0]]
        assert [args[2] for args in lock_calls] == [1, 3]
        rows = conn.executemany.await_args.args[1]
        assert rows == [(booking.id, 1, 1), (booking.id, 3, 1)]

    @pytest.mark.asyncio
    async def test_create_conflict_inside_transaction(self) -> None:
        conn = _conn()
        conn.fetch.return_value = [{'room_id': 1, 'bed_number': 1}]
        booking = make_booking(beds=[(1, 1)], check_in=date(2030, 7, 1), check_out=date(2030, 7, 3))

        with _patch_connection(booking_repo_impl, conn):
            with pytest.raises(ConflictError) as exc_info:
                await BookingRepoImpl().create_booking(booking=booking)

        assert exc_info.value.conflicting_beds == [BedSelection(room_id=1, bed_number=1)]
        conn.executemany.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self) -> None:
        conn = _conn()
        conn.fetchrow.return_value = None

        with _patch_connection(booking_repo_impl, conn):
            assert await BookingRepoImpl().get_by_id(booking_id=uuid7()) is None


class TestGuestRepoImpl:
    @pytest.mark.asyncio
    async def test_upsert_normalizes_email(self) -> None:
        conn = _conn()
        guest = Guest.create(name='Ana', email='Ana@Example.com')
        conn.fetchrow.return_value = {
            'id': guest.id,
            'name': 'Ana',
            'email': 'ana@example.com',
            'phone': None,
            'created_at': guest.created_at,
            'updated_at': guest.updated_at,
        }

        with _patch_connection(guest_repo_impl, conn):
            stored = await GuestRepoImpl().upsert_by_email(guest=guest)

        assert stored.email == 'ana@example.com'
        assert conn.fetchrow.await_args.args[3] == 'ana@example.com'
