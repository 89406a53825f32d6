from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics
from src.service.reservation.app.dto.reservation_result_dto import CompletePurchaseResult
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.domain.entity.ticket_entity import Ticket


class CompletePurchaseUseCase:
    """
    Commit phase of hold-then-commit.

    The stored expiration_time is authoritative: a hold past its deadline is
    refused here even when the expiry task has not fired yet.
    """

    def __init__(self, *, runner: TransactionRunner, clock: Clock = utc_now) -> None:
        self.runner = runner
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        runner: TransactionRunner = Depends(Provide[Container.transaction_runner]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(runner=runner, clock=clock)

    @Logger.io
    async def execute(self, *, user_id: str, reservation_id: str) -> CompletePurchaseResult:
        """
        Raises:
            NotFoundError: reservation, event or ticket type missing
            PermissionDeniedError: caller does not own the reservation
            FailedPreconditionError: reservation not pending, or past its deadline
        """
        with self.tracer.start_as_current_span(
            'use_case.complete_purchase',
            attributes={'reservation.id': reservation_id, 'user.id': user_id},
        ):

            async def work(uow: AbstractUnitOfWork) -> CompletePurchaseResult:
                return await self._complete(
                    uow=uow, user_id=user_id, reservation_id=reservation_id
                )

            result = await self.runner.run(work, name='complete_purchase')

        reservation_metrics.record_purchase(ticket_count=result.ticket_count)
        Logger.base.info(
            f'💳 [PURCHASE] reservation={reservation_id} issued {result.ticket_count} tickets'
        )
        return result

    async def _complete(
        self, *, uow: AbstractUnitOfWork, user_id: str, reservation_id: str
    ) -> CompletePurchaseResult:
        now = self.clock()

        reservation = await uow.reservation_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise NotFoundError('Reservation not found')
        reservation.validate_owner(user_id)
        reservation.validate_can_complete(now)

        event = await uow.event_definition_repo.get_by_id(event_id=reservation.event_id)
        if event is None:
            raise NotFoundError('Event not found')

        tickets: List[Ticket] = []
        for line in reservation.lines:
            ticket_type = event.find_ticket_type(line.ticket_type_id)
            if ticket_type is None:
                raise NotFoundError('Ticket type not found')

            record = await uow.inventory_repo.get(
                event_id=reservation.event_id, ticket_type_id=line.ticket_type_id
            )
            if record is None:
                Logger.base.warning(
                    f'⚠️ [PURCHASE] No inventory for {reservation.event_id}/'
                    f'{line.ticket_type_id}, counters left untouched'
                )
            else:
                await uow.inventory_repo.update(
                    record=record.commit_sale(quantity=line.quantity, now=now)
                )

            tickets.extend(
                Ticket.issue(
                    reservation_id=reservation.id,
                    owner_id=user_id,
                    event=event,
                    ticket_type=ticket_type,
                    now=now,
                )
                for _ in range(line.quantity)
            )

        await uow.reservation_repo.update(reservation=reservation.mark_completed(now=now))
        created = await uow.ticket_repo.create_many(tickets=tickets)

        return CompletePurchaseResult(
            success=True,
            ticket_count=len(created),
            ticket_ids=[ticket.id for ticket in created],
        )
