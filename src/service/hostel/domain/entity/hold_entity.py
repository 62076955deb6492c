from datetime import date, datetime, timedelta, timezone
from enum import StrEnum
from typing import Any, List, Optional

import attrs
from uuid_utils import uuid7

from src.platform.exception.exceptions import ConflictError, ValidationError
from src.service.hostel.domain.value_object.bed_selection import BedSelection
from src.service.hostel.domain.value_object.stay_period import ranges_overlap


class HoldStatus(StrEnum):
    ACTIVE = 'active'
    CONFIRMED = 'confirmed'
    RELEASED = 'released'
    EXPIRED = 'expired'


@attrs.define
class Hold:
    """
    Time-bounded advisory reservation of beds while the guest pays.

    ACTIVE moves to exactly one terminal state and never back.
    """

    id: str
    bed_selections: List[BedSelection]
    check_in: date
    check_out: date
    created_at: datetime
    expires_at: datetime
    status: HoldStatus = HoldStatus.ACTIVE
    payment_status: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    payload: dict[str, Any] = attrs.field(factory=dict)

    @classmethod
    def create(
        cls,
        *,
        bed_selections: List[BedSelection],
        check_in: date,
        check_out: date,
        ttl_minutes: int,
        payload: Optional[dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> 'Hold':
        if not bed_selections:
            raise ValidationError('A hold needs at least one bed')
        if len(set(bed_selections)) != len(bed_selections):
            raise ValidationError('Duplicate beds in hold request')
        if check_out <= check_in:
            raise ValidationError('Check-out date must be after check-in date')
        if ttl_minutes <= 0:
            raise ValidationError('Hold TTL must be positive')

        now = now or datetime.now(timezone.utc)
        return cls(
            id=str(uuid7()),
            bed_selections=sorted(bed_selections),
            check_in=check_in,
            check_out=check_out,
            created_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
            payload=payload or {},
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_live(self, now: datetime) -> bool:
        """Active and still inside its TTL: the only state that blocks beds."""
        return self.status == HoldStatus.ACTIVE and not self.is_expired(now)

    def overlaps(self, start: date, end: date) -> bool:
        return ranges_overlap(self.check_in, self.check_out, start, end)

    def confirm(self, *, payment_status: str, now: Optional[datetime] = None) -> 'Hold':
        if self.status == HoldStatus.CONFIRMED:
            return self
        if self.status != HoldStatus.ACTIVE:
            raise ConflictError(f'Hold {self.id} is {self.status} and cannot be confirmed')
        return attrs.evolve(
            self,
            status=HoldStatus.CONFIRMED,
            payment_status=payment_status,
            confirmed_at=now or datetime.now(timezone.utc),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'bed_selections': [bed.to_dict() for bed in self.bed_selections],
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat(),
            'created_at': self.created_at.isoformat(),
            'expires_at': self.expires_at.isoformat(),
            'status': str(self.status),
            'payment_status': self.payment_status,
            'confirmed_at': self.confirmed_at.isoformat() if self.confirmed_at else None,
            'payload': self.payload,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Hold':
        confirmed_at = data.get('confirmed_at')
        return cls(
            id=data['id'],
            bed_selections=[BedSelection.from_dict(bed) for bed in data['bed_selections']],
            check_in=date.fromisoformat(data['check_in']),
            check_out=date.fromisoformat(data['check_out']),
            created_at=datetime.fromisoformat(data['created_at']),
            expires_at=datetime.fromisoformat(data['expires_at']),
            status=HoldStatus(data.get('status', HoldStatus.ACTIVE)),
            payment_status=data.get('payment_status'),
            confirmed_at=datetime.fromisoformat(confirmed_at) if confirmed_at else None,
            payload=data.get('payload') or {},
        )
