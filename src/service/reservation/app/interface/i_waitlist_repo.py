from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.reservation.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.reservation.domain.enum.reservation_status import NotificationStatus


class IWaitlistRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, waitlist_id: str) -> Optional[WaitlistEntry]:
        pass

    @abstractmethod
    async def get_by_request_id(self, *, request_id: str) -> Optional[WaitlistEntry]:
        pass

    @abstractmethod
    async def create(self, *, entry: WaitlistEntry) -> WaitlistEntry:
        pass

    @abstractmethod
    async def update(self, *, entry: WaitlistEntry) -> WaitlistEntry:
        pass

    @abstractmethod
    async def list_waiting(
        self, *, event_id: str, ticket_type_id: str, limit: int
    ) -> List[WaitlistEntry]:
        """
        Waiting entries of one (event, ticket type) partition

        Returns:
            At most `limit` entries ordered by ascending request_time
        """
        pass

    @abstractmethod
    async def update_notification_status(
        self, *, waitlist_id: str, notification_status: NotificationStatus
    ) -> None:
        pass
