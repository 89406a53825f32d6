"""
Inventory Snapshot Query

Inventory records are created lazily on the first reservation attempt.
Until then the counters are derived from the event's ticket type definition,
so callers always see a consistent snapshot for a known ticket type.
"""

from typing import Callable, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.domain.entity.inventory_entity import InventoryRecord


class GetInventoryUseCase:
    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, event_id: str, ticket_type_id: str) -> InventoryRecord:
        async with self.uow_factory() as uow:
            record = await uow.inventory_repo.get(event_id=event_id, ticket_type_id=ticket_type_id)
            if record is not None:
                return record

            event = await uow.event_definition_repo.get_by_id(event_id=event_id)

        if event is None:
            raise NotFoundError('Event not found')
        ticket_type = event.find_ticket_type(ticket_type_id)
        if ticket_type is None:
            raise NotFoundError(f'Ticket type {ticket_type_id} not found')

        # Not persisted: the record is only materialized inside a reservation transaction
        return InventoryRecord(
            event_id=event_id,
            ticket_type_id=ticket_type_id,
            total_quantity=ticket_type.total_quantity,
            available_quantity=ticket_type.total_quantity,
        )
