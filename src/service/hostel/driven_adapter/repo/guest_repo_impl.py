import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import acquire_connection
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.interface.i_guest_repo import IGuestRepo
from src.service.hostel.domain.entity.guest_entity import Guest, normalize_email


class GuestRepoImpl(IGuestRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Guest:
        return Guest(
            id=UUID(str(row['id'])),
            name=row['name'],
            email=row['email'],
            phone=row['phone'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    @Logger.io
    async def get_by_id(self, *, guest_id: UUID) -> Guest | None:
        async with acquire_connection() as conn:
            row = await conn.fetchrow(
                'SELECT id, name, email, phone, created_at, updated_at FROM guest WHERE id = $1',
                guest_id,
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def get_by_email(self, *, email: str) -> Guest | None:
        async with acquire_connection() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, name, email, phone, created_at, updated_at
                FROM guest
                WHERE lower(email) = $1
                """,
                normalize_email(email),
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def upsert_by_email(self, *, guest: Guest) -> Guest:
        async with acquire_connection() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO guest (id, name, email, phone, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $5)
                ON CONFLICT ((lower(email))) DO UPDATE
                SET name = EXCLUDED.name,
                    phone = COALESCE(EXCLUDED.phone, guest.phone),
                    updated_at = EXCLUDED.updated_at
                RETURNING id, name, email, phone, created_at, updated_at
                """,
                guest.id,
                guest.name,
                normalize_email(guest.email),
                guest.phone,
                guest.created_at,
            )
        return self._row_to_entity(row)
