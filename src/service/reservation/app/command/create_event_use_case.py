from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.domain.entity.event_definition_entity import (
    EventDate,
    EventDefinition,
    EventLocation,
    TicketTypeDefinition,
)


class CreateEventUseCase:
    def __init__(self, *, runner: TransactionRunner, clock: Clock = utc_now) -> None:
        self.runner = runner
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        runner: TransactionRunner = Depends(Provide[Container.transaction_runner]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(runner=runner, clock=clock)

    @Logger.io
    async def create(
        self,
        *,
        name: str,
        description: str,
        promoter_ids: List[str],
        dates: List[EventDate],
        locations: List[EventLocation],
        ticket_types: List[TicketTypeDefinition],
    ) -> EventDefinition:
        # Validation happens before the transaction; inventory is seeded lazily on first reserve
        event = EventDefinition.create(
            name=name,
            description=description,
            promoter_ids=promoter_ids,
            dates=dates,
            locations=locations,
            ticket_types=ticket_types,
            now=self.clock(),
        )

        async def work(uow: AbstractUnitOfWork) -> EventDefinition:
            return await uow.event_definition_repo.create(event=event)

        created = await self.runner.run(work, name='create_event')
        Logger.base.info(f'🎪 [EVENT] Created event {created.id} ({created.name})')
        return created
