"""
Inventory Repository Interface

Counters are read and written inside the caller's unit of work only.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.service.reservation.domain.entity.inventory_entity import InventoryRecord


class IInventoryRepo(ABC):
    @abstractmethod
    async def get(self, *, event_id: str, ticket_type_id: str) -> Optional[InventoryRecord]:
        """
        Load the record for update

        Args:
            event_id: Event ID
            ticket_type_id: Ticket type name within the event

        Returns:
            InventoryRecord or None if the record has not been created yet
        """
        pass

    @abstractmethod
    async def create(self, *, record: InventoryRecord) -> InventoryRecord:
        pass

    @abstractmethod
    async def update(self, *, record: InventoryRecord) -> InventoryRecord:
        pass
