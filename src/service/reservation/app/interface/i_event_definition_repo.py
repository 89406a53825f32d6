from abc import ABC, abstractmethod
from typing import Optional

from src.service.reservation.domain.entity.event_definition_entity import EventDefinition


class IEventDefinitionRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, event_id: str) -> Optional[EventDefinition]:
        pass

    @abstractmethod
    async def create(self, *, event: EventDefinition) -> EventDefinition:
        pass
