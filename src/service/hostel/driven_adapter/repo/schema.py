"""
PostgreSQL schema for the booking store.

Idempotent (IF NOT EXISTS); run through ``create_tables`` at deploy time.
"""

import asyncpg

from src.platform.logging.loguru_io import Logger


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS guest (
    id UUID PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    phone TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE UNIQUE INDEX IF NOT EXISTS guest_email_lower_uidx ON guest (lower(email));

CREATE TABLE IF NOT EXISTS booking (
    id UUID PRIMARY KEY,
    guest_id UUID NOT NULL REFERENCES guest (id),
    check_in DATE NOT NULL,
    check_out DATE NOT NULL,
    men INTEGER NOT NULL CHECK (men >= 0),
    women INTEGER NOT NULL CHECK (women >= 0),
    total_price NUMERIC(12, 2) NOT NULL,
    deposit_amount NUMERIC(12, 2) NOT NULL,
    remaining_amount NUMERIC(12, 2) NOT NULL,
    balance_due_date DATE,
    amount_paid NUMERIC(12, 2) NOT NULL DEFAULT 0,
    status VARCHAR(20) NOT NULL,
    payment_status VARCHAR(20) NOT NULL,
    is_carnival BOOLEAN NOT NULL DEFAULT FALSE,
    hold_id TEXT,
    cancelled_at TIMESTAMPTZ,
    cancellation_reason TEXT,
    refund_amount NUMERIC(12, 2),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    CHECK (check_out > check_in)
);
CREATE INDEX IF NOT EXISTS booking_stay_idx ON booking (check_in, check_out);
CREATE INDEX IF NOT EXISTS booking_guest_idx ON booking (guest_id);

CREATE TABLE IF NOT EXISTS booking_bed (
    booking_id UUID NOT NULL REFERENCES booking (id) ON DELETE CASCADE,
    room_id INTEGER NOT NULL,
    bed_number INTEGER NOT NULL CHECK (bed_number >= 1),
    PRIMARY KEY (booking_id, room_id, bed_number)
);
CREATE INDEX IF NOT EXISTS booking_bed_room_idx ON booking_bed (room_id, bed_number);
"""


async def create_tables(conn: asyncpg.Connection) -> None:
    await conn.execute(SCHEMA_SQL)
    Logger.base.info('🗄️ [SCHEMA] guest / booking / booking_bed ready')
