from abc import ABC, abstractmethod
from typing import List

from src.service.reservation.domain.entity.ticket_entity import Ticket


class ITicketRepo(ABC):
    @abstractmethod
    async def create_many(self, *, tickets: List[Ticket]) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_by_reservation_id(self, *, reservation_id: str) -> List[Ticket]:
        pass
