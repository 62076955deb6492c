from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.hostel.domain.entity.guest_entity import Guest


class IGuestRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, guest_id: UUID) -> Guest | None:
        pass

    @abstractmethod
    async def get_by_email(self, *, email: str) -> Guest | None:
        pass

    @abstractmethod
    async def upsert_by_email(self, *, guest: Guest) -> Guest:
        """
        Insert the guest, or update name/phone of the existing guest with the same
        (case-insensitive) email. Returns the stored guest with its persisted id.
        """
        pass
