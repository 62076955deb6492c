"""
Hold Manager

TTL-bound advisory holds over (room, bed, night) keys in the shared lock store.

Key layout (before the store's own prefix):
    {ns}:record:{hold_id}                    -> hold JSON
    {ns}:bed:{room}:{bed}:{night ISO date}   -> owning hold_id

A bed-night key is claimed with set-if-absent and the hold's TTL, so the first
writer wins and a claim disappears exactly when the hold expires. The record
outlives its claims by a grace period so the sweep can still see and mark it.
"""

from datetime import date, datetime, timezone
from typing import Any, List, Optional

import attrs
import orjson

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ConflictError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.hostel.app.interface.i_advisory_lock_store import IAdvisoryLockStore
from src.service.hostel.app.interface.i_booking_repo import IBookingRepo
from src.service.hostel.domain.entity.hold_entity import Hold, HoldStatus
from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.domain.value_object.stay_period import StayPeriod


# Re-reads allowed when a concurrent writer changes the record mid-confirm
_TRANSITION_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HoldManager:
    def __init__(
        self,
        *,
        lock_store: IAdvisoryLockStore,
        booking_repo: IBookingRepo,
        default_ttl_minutes: Optional[int] = None,
        namespace: Optional[str] = None,
    ) -> None:
        self.lock_store = lock_store
        self.booking_repo = booking_repo
        self.default_ttl_minutes = default_ttl_minutes or settings.HOLD_TTL_MINUTES
        self.namespace = namespace or settings.HOLD_KEY_NAMESPACE

    # ---- keys ----

    def record_key(self, hold_id: str) -> str:
        return f'{self.namespace}:record:{hold_id}'

    @property
    def record_prefix(self) -> str:
        return f'{self.namespace}:record:'

    def bed_night_key(self, bed: BedSelection, night: date) -> str:
        return f'{self.namespace}:bed:{bed.room_id}:{bed.bed_number}:{night.isoformat()}'

    def _claim_keys(self, hold: Hold) -> list[tuple[BedSelection, str]]:
        period = StayPeriod(check_in=hold.check_in, check_out=hold.check_out)
        return [
            (bed, self.bed_night_key(bed, night))
            for bed in hold.bed_selections
            for night in period.iter_nights()
        ]

    # ---- record persistence ----

    @staticmethod
    def _encode(hold: Hold) -> str:
        return orjson.dumps(hold.to_dict(), default=str).decode()

    async def _save(self, hold: Hold, *, ttl_seconds: int) -> None:
        await self.lock_store.set(
            key=self.record_key(hold.id), value=self._encode(hold), ttl_seconds=max(1, ttl_seconds)
        )

    async def _transition(self, hold: Hold, *, expected_raw: str, ttl_seconds: int) -> bool:
        """Write ``hold`` only while its record still reads ``expected_raw``."""
        return await self.lock_store.compare_and_set(
            key=self.record_key(hold.id),
            expected=expected_raw,
            value=self._encode(hold),
            ttl_seconds=max(1, ttl_seconds),
        )

    @staticmethod
    def _decode(raw: Optional[str]) -> Optional[Hold]:
        if raw is None:
            return None
        return Hold.from_dict(orjson.loads(raw))

    async def _load(self, hold_id: str) -> tuple[Optional[Hold], Optional[str]]:
        raw = await self.lock_store.get(key=self.record_key(hold_id))
        return self._decode(raw), raw

    async def _release_claims(self, hold: Hold) -> None:
        for _, key in self._claim_keys(hold):
            await self.lock_store.delete_if_value(key=key, value=hold.id)

    # ---- operations ----

    @Logger.io
    async def start_hold(
        self,
        *,
        beds: List[BedSelection],
        check_in: date,
        check_out: date,
        ttl_minutes: Optional[int] = None,
        payload: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Hold:
        """
        Raises:
            ValidationError: empty/duplicate beds, bad dates or TTL
            ConflictError: a bed collides with a live hold or an occupying booking
            TransientStoreError: lock store unreachable (claims already taken are undone)
        """
        now = now or _utcnow()
        hold = Hold.create(
            bed_selections=beds,
            check_in=check_in,
            check_out=check_out,
            ttl_minutes=ttl_minutes or self.default_ttl_minutes,
            payload=payload,
            now=now,
        )

        requested = set(hold.bed_selections)
        bookings = await self.booking_repo.list_occupying_overlapping(
            start=check_in, end=check_out
        )
        booked = sorted(
            {bed for booking in bookings for bed in booking.bed_selections if bed in requested}
        )
        if booked:
            raise ConflictError(
                f'Beds already booked: {", ".join(bed.bed_id for bed in booked)}',
                conflicting_beds=booked,
            )

        ttl_seconds = int((hold.expires_at - now).total_seconds())
        claimed: list[str] = []
        try:
            for bed, key in self._claim_keys(hold):
                ok = await self.lock_store.set(
                    key=key, value=hold.id, ttl_seconds=ttl_seconds, only_if_absent=True
                )
                if not ok:
                    Logger.base.info(
                        f'⛔ [HOLD] {hold.id} lost claim on {key}, rolling back {len(claimed)} claims'
                    )
                    raise ConflictError(
                        f'Bed {bed.bed_id} is held by another guest for these dates',
                        conflicting_beds=[bed],
                    )
                claimed.append(key)

            await self._save(
                hold, ttl_seconds=ttl_seconds + settings.HOLD_RECORD_GRACE_SECONDS
            )
        except Exception:
            for key in claimed:
                await self.lock_store.delete_if_value(key=key, value=hold.id)
            raise

        Logger.base.info(
            f'🔒 [HOLD] Started {hold.id}: {len(hold.bed_selections)} beds '
            f'{check_in}→{check_out}, expires {hold.expires_at.isoformat()}'
        )
        return hold

    @Logger.io
    async def get_hold(self, *, hold_id: str) -> Optional[Hold]:
        hold, _ = await self._load(hold_id)
        return hold

    @Logger.io
    async def confirm_hold(
        self, *, hold_id: str, payment_status: str, now: Optional[datetime] = None
    ) -> Hold:
        """
        Call only after the durable booking write is acknowledged.

        Confirming twice returns the confirmed hold. An active hold past its TTL
        that the sweep has not reached yet can still be confirmed. A concurrent
        sweep or release decides the outcome if it writes first.

        Raises:
            NotFoundError: no such hold
            ConflictError: hold was released or expired
        """
        for _ in range(_TRANSITION_ATTEMPTS):
            hold, raw = await self._load(hold_id)
            if hold is None or raw is None:
                raise NotFoundError(f'Hold {hold_id} not found')
            if hold.status == HoldStatus.CONFIRMED:
                return hold

            confirmed = hold.confirm(payment_status=payment_status, now=now or _utcnow())
            if await self._transition(
                confirmed,
                expected_raw=raw,
                ttl_seconds=settings.HOLD_CONFIRMED_RETENTION_HOURS * 3600,
            ):
                # The booking now blocks these beds; drop the bed-night claims
                await self._release_claims(confirmed)
                Logger.base.info(f'✅ [HOLD] Confirmed {hold_id} (payment={payment_status})')
                return confirmed

        raise ConflictError(f'Hold {hold_id} kept changing while being confirmed')

    @Logger.io
    async def release_hold(self, *, hold_id: str) -> bool:
        """Idempotent. Returns True only when an active hold was released."""
        hold, raw = await self._load(hold_id)
        if hold is None or raw is None or hold.status != HoldStatus.ACTIVE:
            return False

        released = attrs.evolve(hold, status=HoldStatus.RELEASED)
        if not await self._transition(
            released, expected_raw=raw, ttl_seconds=settings.HOLD_RECORD_GRACE_SECONDS
        ):
            # Confirmed or swept in the meantime; that outcome stands
            Logger.base.info(f'↩️ [HOLD] {hold_id} changed before release, left as is')
            return False

        await self._release_claims(hold)
        Logger.base.info(f'🔓 [HOLD] Released {hold_id}')
        return True

    async def _list_records(self) -> list[tuple[Hold, str]]:
        keys = await self.lock_store.list_keys(prefix=self.record_prefix)
        if not keys:
            return []
        raws = await self.lock_store.get_many(keys=keys)
        return [(self._decode(raw), raw) for raw in raws if raw is not None]

    @Logger.io
    async def list_active_holds(
        self, *, start: date, end: date, now: Optional[datetime] = None
    ) -> List[Hold]:
        now = now or _utcnow()
        return [
            hold
            for hold, _ in await self._list_records()
            if hold.is_live(now) and hold.overlaps(start, end)
        ]

    @Logger.io
    async def sweep_expired(self, *, now: Optional[datetime] = None) -> List[str]:
        """Mark every active hold past its TTL as expired. Confirmed holds are never touched."""
        now = now or _utcnow()
        swept: list[str] = []
        for hold, raw in await self._list_records():
            if hold.status != HoldStatus.ACTIVE or not hold.is_expired(now):
                continue
            expired = attrs.evolve(hold, status=HoldStatus.EXPIRED)
            if not await self._transition(
                expired, expected_raw=raw, ttl_seconds=settings.HOLD_RECORD_GRACE_SECONDS
            ):
                Logger.base.info(f'↩️ [HOLD] {hold.id} changed during sweep, skipped')
                continue
            await self._release_claims(hold)
            swept.append(hold.id)

        if swept:
            Logger.base.info(f'🧹 [HOLD] Swept {len(swept)} expired holds')
        return swept
