from datetime import datetime, timezone
import re
from typing import Optional

import attrs
from uuid_utils import UUID, uuid7

from src.platform.exception.exceptions import ValidationError


_EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def normalize_email(email: str) -> str:
    return email.strip().lower()


@attrs.define
class Guest:
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, *, name: str, email: str, phone: Optional[str] = None) -> 'Guest':
        if not name or not name.strip():
            raise ValidationError('Guest name is required')
        email = normalize_email(email)
        if not _EMAIL_PATTERN.match(email):
            raise ValidationError(f'Invalid email address: {email}')

        now = datetime.now(timezone.utc)
        return cls(
            id=uuid7(),
            name=name.strip(),
            email=email,
            phone=phone.strip() if phone else None,
            created_at=now,
            updated_at=now,
        )

    def update_contact(self, *, name: str, phone: Optional[str]) -> 'Guest':
        """Repeat guests keep their id; newest name/phone wins."""
        return attrs.evolve(
            self,
            name=name.strip() or self.name,
            phone=(phone.strip() if phone else None) or self.phone,
            updated_at=datetime.now(timezone.utc),
        )
