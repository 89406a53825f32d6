from typing import Callable, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.domain.entity.waitlist_entry_entity import WaitlistEntry


class GetWaitlistEntryUseCase:
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
    async def execute(self, *, user_id: str, waitlist_id: str) -> WaitlistEntry:
        async with self.uow_factory() as uow:
            entry = await uow.waitlist_repo.get_by_id(waitlist_id=waitlist_id)

        if entry is None:
            raise NotFoundError('Waitlist entry not found')
        entry.validate_owner(user_id)
        return entry
