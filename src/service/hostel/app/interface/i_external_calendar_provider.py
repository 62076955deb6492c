from abc import ABC, abstractmethod
from datetime import date
from typing import List

from src.service.hostel.domain.value_object.external_block import ExternalBlock


class IExternalCalendarProvider(ABC):
    """Read-only access to blocks imported from third-party calendar feeds."""

    @abstractmethod
    async def list_blocks(self, *, start: date, end: date) -> List[ExternalBlock]:
        """Blocks overlapping [start, end), stale ones included (flagged)."""
        pass
