from abc import ABC, abstractmethod
from typing import Optional

from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.reservation.domain.enum.reservation_status import NotificationStatus


class IReservationRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def get_by_request_id(self, *, request_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def create(self, *, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def update(self, *, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def update_notification_status(
        self, *, reservation_id: str, notification_status: NotificationStatus
    ) -> None:
        pass
