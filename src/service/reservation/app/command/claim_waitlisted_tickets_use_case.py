from typing import List, Optional, Self

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import (
    FailedPreconditionError,
    InternalError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics
from src.service.reservation.app.dto.reservation_result_dto import ClaimWaitlistResult
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.app.service.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.service.waitlist_processor import WaitlistProcessor
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.enum.reservation_status import NotificationStatus
from src.service.reservation.domain.value_object.notification_message import NotificationMessage
from src.service.reservation.domain.value_object.ticket_line import TicketLine


WAITLIST_NOTIFICATION_EXPIRED = 'Waitlist notification has expired'


@attrs.define
class _ClaimOutcome:
    result: Optional[ClaimWaitlistResult] = None
    lapsed: bool = False
    notifications: List[NotificationMessage] = attrs.field(factory=list)


class ClaimWaitlistedTicketsUseCase:
    """
    Convert a notified waitlist entry's earmark into a pending reservation

    A claim arriving after the window closed does the expiry work itself and
    commits it before refusing, so the earmark moves on to the next entry even
    if the expiry task has not run yet.
    """

    def __init__(
        self,
        *,
        runner: TransactionRunner,
        dispatcher: NotificationDispatcher,
        waitlist_processor: WaitlistProcessor,
        clock: Clock = utc_now,
        hold_minutes: Optional[int] = None,
    ) -> None:
        self.runner = runner
        self.dispatcher = dispatcher
        self.waitlist_processor = waitlist_processor
        self.clock = clock
        self.hold_minutes = hold_minutes or settings.RESERVATION_HOLD_MINUTES
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        runner: TransactionRunner = Depends(Provide[Container.transaction_runner]),
        dispatcher: NotificationDispatcher = Depends(Provide[Container.notification_dispatcher]),
        waitlist_processor: WaitlistProcessor = Depends(Provide[Container.waitlist_processor]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(
            runner=runner,
            dispatcher=dispatcher,
            waitlist_processor=waitlist_processor,
            clock=clock,
        )

    @Logger.io
    async def execute(self, *, user_id: str, waitlist_id: str) -> ClaimWaitlistResult:
        """
        Raises:
            NotFoundError: waitlist entry missing
            PermissionDeniedError: caller does not own the entry
            FailedPreconditionError: entry not notified, or its claim window lapsed
        """
        with self.tracer.start_as_current_span(
            'use_case.claim_waitlisted_tickets',
            attributes={'waitlist.id': waitlist_id, 'user.id': user_id},
        ):

            async def work(uow: AbstractUnitOfWork) -> _ClaimOutcome:
                return await self._claim(uow=uow, user_id=user_id, waitlist_id=waitlist_id)

            outcome = await self.runner.run(work, name='claim_waitlisted_tickets')

        await self.dispatcher.dispatch(outcome.notifications)

        if outcome.lapsed:
            Logger.base.info(f'⌛ [CLAIM] Waitlist entry {waitlist_id} claimed too late')
            raise FailedPreconditionError(WAITLIST_NOTIFICATION_EXPIRED)

        if outcome.result is None:
            raise InternalError(f'Claim of waitlist entry {waitlist_id} produced no reservation')
        reservation_metrics.record_waitlist_claimed()
        Logger.base.info(
            f'🎟️ [CLAIM] Waitlist entry {waitlist_id} -> reservation {outcome.result.reservation_id}'
        )
        return outcome.result

    async def _claim(
        self, *, uow: AbstractUnitOfWork, user_id: str, waitlist_id: str
    ) -> _ClaimOutcome:
        now = self.clock()

        entry = await uow.waitlist_repo.get_by_id(waitlist_id=waitlist_id)
        if entry is None:
            raise NotFoundError('Waitlist entry not found')
        entry.validate_owner(user_id)
        entry.validate_can_claim()

        if entry.is_claim_window_lapsed(now):
            notifications = await self.waitlist_processor.expire_entry(
                uow=uow, entry=entry, now=now
            )
            return _ClaimOutcome(lapsed=True, notifications=notifications)

        inventory = await uow.inventory_repo.get(
            event_id=entry.event_id, ticket_type_id=entry.ticket_type_id
        )
        if inventory is None:
            raise InternalError(
                f'Inventory missing for earmarked waitlist entry {entry.id} '
                f'({entry.event_id}/{entry.ticket_type_id})'
            )

        reservation = Reservation.create(
            user_id=user_id,
            event_id=entry.event_id,
            lines=[TicketLine(ticket_type_id=entry.ticket_type_id, quantity=entry.quantity)],
            reservation_time=now,
            now=now,
            hold_minutes=self.hold_minutes,
            source_waitlist_id=entry.id,
        )
        # The user already got the "tickets available" message for this entry
        reservation = attrs.evolve(reservation, notification_status=NotificationStatus.SKIPPED)
        reservation = await uow.reservation_repo.create(reservation=reservation)

        await uow.inventory_repo.update(
            record=inventory.convert_earmark_to_hold(quantity=entry.quantity, now=now)
        )
        await uow.waitlist_repo.update(entry=entry.mark_claimed(reservation_id=reservation.id))
        await uow.task_scheduler.schedule(
            task_name=DeferredTaskName.EXPIRE_RESERVATION,
            payload={'reservation_id': reservation.id},
            run_at=reservation.expiration_time,
        )

        return _ClaimOutcome(
            result=ClaimWaitlistResult(
                success=True,
                reservation_id=reservation.id,
                expires_at=reservation.expiration_time,
            )
        )
