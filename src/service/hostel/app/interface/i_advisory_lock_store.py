"""
Advisory Lock Store Interface

Best-effort key/value store with TTLs shared by every worker. Losing it only
forfeits in-flight holds; confirmed state lives in the booking store.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class IAdvisoryLockStore(ABC):
    @abstractmethod
    async def get(self, *, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def get_many(self, *, keys: List[str]) -> List[Optional[str]]:
        """Values in the same order as ``keys``; None where absent."""
        pass

    @abstractmethod
    async def set(
        self, *, key: str, value: str, ttl_seconds: int, only_if_absent: bool = False
    ) -> bool:
        """
        Returns:
            False only when ``only_if_absent`` and the key already exists
        """
        pass

    @abstractmethod
    async def delete(self, *, keys: List[str]) -> int:
        pass

    @abstractmethod
    async def delete_if_value(self, *, key: str, value: str) -> bool:
        """Delete only while the key still holds ``value`` (ownership check)."""
        pass

    @abstractmethod
    async def compare_and_set(
        self, *, key: str, expected: str, value: str, ttl_seconds: int
    ) -> bool:
        """Overwrite only while the key still holds ``expected``; False otherwise."""
        pass

    @abstractmethod
    async def list_keys(self, *, prefix: str) -> List[str]:
        pass
