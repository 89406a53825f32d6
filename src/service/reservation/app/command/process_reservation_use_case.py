import time
from datetime import datetime, timezone
from typing import Any, List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import InvalidArgumentError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics
from src.service.reservation.app.dto.reservation_result_dto import ReserveResult
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.app.service.notification_dispatcher import NotificationDispatcher
from src.service.reservation.domain.entity.inventory_entity import InventoryRecord
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.reservation.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.value_object.notification_message import NotificationMessage
from src.service.reservation.domain.value_object.ticket_line import (
    TicketLine,
    validate_reservation_request,
)


NOT_ENOUGH_TICKETS = 'Not enough tickets available'


class ProcessReservationUseCase:
    """
    Reserve tickets - the hold phase of hold-then-commit

    Flow (one transaction):
    1. Load event (NotFound if absent)
    2. Load or lazily create each line's inventory record
    3. Any line short of availability -> waitlist that line, no hold anywhere
    4. Otherwise hold every line, create a pending Reservation and schedule
       its expiry at the hold deadline

    The outcome notification is delivered after commit.
    """

    def __init__(
        self,
        *,
        runner: TransactionRunner,
        dispatcher: NotificationDispatcher,
        clock: Clock = utc_now,
        hold_minutes: Optional[int] = None,
    ) -> None:
        self.runner = runner
        self.dispatcher = dispatcher
        self.clock = clock
        self.hold_minutes = hold_minutes or settings.RESERVATION_HOLD_MINUTES
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        runner: TransactionRunner = Depends(Provide[Container.transaction_runner]),
        dispatcher: NotificationDispatcher = Depends(Provide[Container.notification_dispatcher]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(runner=runner, dispatcher=dispatcher, clock=clock)

    @Logger.io
    async def process(self, *, payload: dict[str, Any]) -> ReserveResult:
        """
        Scheduler entry point for a queued reservation request

        Payload: {request_id, user_id, event_id, tickets: [{ticket_type_id, quantity}], timestamp}
        with timestamp in epoch milliseconds (the time the request was queued).
        A payload whose request_id was already processed returns the earlier
        outcome without writing or notifying again.

        Raises:
            InvalidArgumentError / NotFoundError: permanent failures, after the
                requester was sent a "Reservation Failed" notification
        """
        user_id = str(payload.get('user_id') or '')
        try:
            lines, reservation_time = self._parse_payload(payload)
            return await self.reserve(
                user_id=user_id,
                event_id=str(payload.get('event_id') or ''),
                lines=lines,
                reservation_time=reservation_time,
                request_id=payload.get('request_id') or None,
            )
        except (InvalidArgumentError, NotFoundError) as e:
            reservation_metrics.record_reservation(result='failed', duration=0.0)
            if user_id:
                await self.dispatcher.dispatch(
                    [NotificationMessage.reservation_failed(user_id=user_id, error=e.message)]
                )
            raise

    @Logger.io
    async def reserve(
        self,
        *,
        user_id: str,
        event_id: str,
        lines: List[TicketLine],
        reservation_time: Optional[datetime] = None,
        request_id: Optional[str] = None,
    ) -> ReserveResult:
        validate_reservation_request(event_id=event_id, lines=lines)
        started = time.perf_counter()

        with self.tracer.start_as_current_span(
            'use_case.reserve',
            attributes={
                'event.id': event_id,
                'user.id': user_id,
                'reservation.lines': len(lines),
            },
        ):

            async def work(uow: AbstractUnitOfWork) -> ReserveResult:
                return await self._reserve(
                    uow=uow,
                    user_id=user_id,
                    event_id=event_id,
                    lines=lines,
                    reservation_time=reservation_time,
                    request_id=request_id,
                )

            result = await self.runner.run(work, name='reserve')

        if result.replayed:
            Logger.base.info(f'🔁 [RESERVE] Request {request_id} already processed, skipping')
            return result

        outcome = 'reserved' if result.success else 'waitlisted'
        reservation_metrics.record_reservation(
            result=outcome, duration=time.perf_counter() - started
        )
        Logger.base.info(
            f'🎫 [RESERVE] user={user_id} event={event_id} -> {outcome} '
            f'({result.reservation_id or result.waitlist_id})'
        )

        await self.dispatcher.dispatch(result.notifications)
        return result

    async def _reserve(
        self,
        *,
        uow: AbstractUnitOfWork,
        user_id: str,
        event_id: str,
        lines: List[TicketLine],
        reservation_time: Optional[datetime],
        request_id: Optional[str],
    ) -> ReserveResult:
        now = self.clock()

        if request_id:
            replayed = await self._replay(uow=uow, request_id=request_id)
            if replayed is not None:
                return replayed

        event = await uow.event_definition_repo.get_by_id(event_id=event_id)
        if event is None:
            raise NotFoundError('Event not found')

        # Check every line before holding anything: a shortage anywhere means no partial hold
        to_hold: list[tuple[InventoryRecord, TicketLine]] = []
        for line in lines:
            record = await uow.inventory_repo.get(
                event_id=event_id, ticket_type_id=line.ticket_type_id
            )
            if record is None:
                ticket_type = event.find_ticket_type(line.ticket_type_id)
                if ticket_type is None:
                    raise NotFoundError(f'Ticket type {line.ticket_type_id} not found')
                record = await uow.inventory_repo.create(
                    record=InventoryRecord.create(
                        event_id=event_id,
                        ticket_type_id=line.ticket_type_id,
                        total_quantity=ticket_type.total_quantity,
                        now=now,
                    )
                )

            if not record.can_hold(line.quantity):
                return await self._waitlist(
                    uow=uow,
                    user_id=user_id,
                    event_id=event_id,
                    line=line,
                    now=now,
                    request_id=request_id,
                )
            to_hold.append((record, line))

        for record, line in to_hold:
            await uow.inventory_repo.update(record=record.hold(quantity=line.quantity, now=now))

        reservation = await uow.reservation_repo.create(
            reservation=Reservation.create(
                user_id=user_id,
                event_id=event_id,
                lines=lines,
                reservation_time=reservation_time or now,
                now=now,
                hold_minutes=self.hold_minutes,
                request_id=request_id,
            )
        )
        await uow.task_scheduler.schedule(
            task_name=DeferredTaskName.EXPIRE_RESERVATION,
            payload={'reservation_id': reservation.id},
            run_at=reservation.expiration_time,
        )

        return ReserveResult(
            success=True,
            reservation_id=reservation.id,
            expires_at=reservation.expiration_time,
            notifications=[
                NotificationMessage.reservation_succeeded(
                    user_id=user_id,
                    reservation_id=reservation.id,
                    expires_at=reservation.expiration_time,
                    hold_minutes=self.hold_minutes,
                )
            ],
        )

    async def _waitlist(
        self,
        *,
        uow: AbstractUnitOfWork,
        user_id: str,
        event_id: str,
        line: TicketLine,
        now: datetime,
        request_id: Optional[str],
    ) -> ReserveResult:
        entry = await uow.waitlist_repo.create(
            entry=WaitlistEntry.create(
                user_id=user_id,
                event_id=event_id,
                ticket_type_id=line.ticket_type_id,
                quantity=line.quantity,
                request_time=now,
                request_id=request_id,
            )
        )
        return ReserveResult(
            success=False,
            waitlisted=True,
            waitlist_id=entry.id,
            error=NOT_ENOUGH_TICKETS,
            notifications=[
                NotificationMessage.reservation_waitlisted(
                    user_id=user_id, waitlist_id=entry.id, error=NOT_ENOUGH_TICKETS
                )
            ],
        )

    @staticmethod
    async def _replay(*, uow: AbstractUnitOfWork, request_id: str) -> Optional[ReserveResult]:
        reservation = await uow.reservation_repo.get_by_request_id(request_id=request_id)
        if reservation is not None:
            return ReserveResult(
                success=True,
                reservation_id=reservation.id,
                expires_at=reservation.expiration_time,
                replayed=True,
            )
        entry = await uow.waitlist_repo.get_by_request_id(request_id=request_id)
        if entry is not None:
            return ReserveResult(
                success=False,
                waitlisted=True,
                waitlist_id=entry.id,
                error=NOT_ENOUGH_TICKETS,
                replayed=True,
            )
        return None

    @staticmethod
    def _parse_payload(payload: dict[str, Any]) -> tuple[List[TicketLine], Optional[datetime]]:
        try:
            lines = [TicketLine.from_dict(item) for item in payload.get('tickets') or []]
            timestamp = payload.get('timestamp')
            reservation_time = (
                datetime.fromtimestamp(int(timestamp) / 1000, tz=timezone.utc)
                if timestamp is not None
                else None
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidArgumentError(f'Malformed reservation payload: {e}') from e
        return lines, reservation_time
