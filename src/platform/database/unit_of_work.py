"""
Unit of Work Pattern - one database transaction shared by all repositories

Architecture:
- UoW owns the session lifecycle (one session per `async with`)
- UoW is responsible for commit/rollback
- Repositories receive the shared session from the UoW
- Use cases coordinate inventory, reservations, waitlist, tickets and
  deferred tasks through a single UoW so they commit or roll back together
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Callable

from sqlalchemy.ext.asyncio import AsyncSession


if TYPE_CHECKING:
    from src.service.reservation.app.interface.i_event_definition_repo import (
        IEventDefinitionRepo,
    )
    from src.service.reservation.app.interface.i_inventory_repo import IInventoryRepo
    from src.service.reservation.app.interface.i_reservation_repo import IReservationRepo
    from src.service.reservation.app.interface.i_task_scheduler import (
        IDeferredTaskRepo,
        ITaskScheduler,
    )
    from src.service.reservation.app.interface.i_ticket_repo import ITicketRepo
    from src.service.reservation.app.interface.i_waitlist_repo import IWaitlistRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the Reservation Service

    Responsibilities:
    - Manage database session lifecycle
    - Coordinate transactions across multiple repositories
    - Provide commit/rollback interface

    Usage:
        async with uow:
            record = await uow.inventory_repo.get(event_id=..., ticket_type_id=...)
            await uow.inventory_repo.update(record=record.hold(...))
            await uow.commit()

    Leaving the block without commit() rolls everything back.
    """

    event_definition_repo: IEventDefinitionRepo
    inventory_repo: IInventoryRepo
    reservation_repo: IReservationRepo
    waitlist_repo: IWaitlistRepo
    ticket_repo: ITicketRepo

    # Same object, two views: use cases schedule, the task worker leases
    task_scheduler: ITaskScheduler
    deferred_task_repo: IDeferredTaskRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    A fresh session is opened on every `async with`, so one instance is one
    transaction attempt. TransactionRunner builds a new instance per retry.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> AbstractUnitOfWork:
        from src.service.reservation.driven_adapter.repo.deferred_task_repo_impl import (
            DeferredTaskRepoImpl,
        )
        from src.service.reservation.driven_adapter.repo.event_definition_repo_impl import (
            EventDefinitionRepoImpl,
        )
        from src.service.reservation.driven_adapter.repo.inventory_repo_impl import (
            InventoryRepoImpl,
        )
        from src.service.reservation.driven_adapter.repo.reservation_repo_impl import (
            ReservationRepoImpl,
        )
        from src.service.reservation.driven_adapter.repo.ticket_repo_impl import TicketRepoImpl
        from src.service.reservation.driven_adapter.repo.waitlist_repo_impl import (
            WaitlistRepoImpl,
        )

        self.session = self.session_factory()

        # Create repositories with shared session
        self.event_definition_repo = EventDefinitionRepoImpl(session=self.session)
        self.inventory_repo = InventoryRepoImpl(session=self.session)
        self.reservation_repo = ReservationRepoImpl(session=self.session)
        self.waitlist_repo = WaitlistRepoImpl(session=self.session)
        self.ticket_repo = TicketRepoImpl(session=self.session)
        self.deferred_task_repo = DeferredTaskRepoImpl(session=self.session)
        self.task_scheduler = self.deferred_task_repo

        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'commit() called outside of `async with uow`'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
