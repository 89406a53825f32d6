from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.app.service.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.service.waitlist_processor import WaitlistProcessor
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.value_object.notification_message import NotificationMessage


class ExpireReservationUseCase:
    """
    Release a hold whose deadline passed and hand the capacity to the waitlist.

    Idempotent: a missing or already resolved reservation is a successful no-op,
    so duplicate or late task deliveries are harmless. A delivery that arrives
    before the hold deadline releases nothing and re-arms the expiry at the deadline.
    """

    def __init__(
        self,
        *,
        runner: TransactionRunner,
        dispatcher: NotificationDispatcher,
        waitlist_processor: WaitlistProcessor,
        clock: Clock = utc_now,
    ) -> None:
        self.runner = runner
        self.dispatcher = dispatcher
        self.waitlist_processor = waitlist_processor
        self.clock = clock
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
    async def execute(self, *, reservation_id: str) -> bool:
        """
        Returns:
            True if this call expired the reservation, False if it was a no-op
        """
        with self.tracer.start_as_current_span(
            'use_case.expire_reservation', attributes={'reservation.id': reservation_id}
        ):

            async def work(uow: AbstractUnitOfWork) -> tuple[bool, List[NotificationMessage]]:
                return await self._expire(uow=uow, reservation_id=reservation_id)

            expired, notifications = await self.runner.run(work, name='expire_reservation')

        if expired:
            reservation_metrics.record_reservation_expired()
            Logger.base.info(f'⌛ [EXPIRE] Reservation {reservation_id} expired and released')
        await self.dispatcher.dispatch(notifications)
        return expired

    async def _expire(
        self, *, uow: AbstractUnitOfWork, reservation_id: str
    ) -> tuple[bool, List[NotificationMessage]]:
        now = self.clock()

        reservation = await uow.reservation_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            Logger.base.warning(f'⚠️ [EXPIRE] Reservation {reservation_id} not found, nothing to do')
            return False, []
        if not reservation.is_pending:
            Logger.base.info(
                f'[EXPIRE] Reservation {reservation_id} already {reservation.status.value}, skipping'
            )
            return False, []
        if now < reservation.expiration_time:
            # Delivered ahead of the deadline: re-arm instead of releasing a live hold
            await uow.task_scheduler.schedule(
                task_name=DeferredTaskName.EXPIRE_RESERVATION,
                payload={'reservation_id': reservation.id},
                run_at=reservation.expiration_time,
            )
            Logger.base.info(
                f'[EXPIRE] Reservation {reservation_id} holds until '
                f'{reservation.expiration_time.isoformat()}, rescheduled'
            )
            return False, []

        await uow.reservation_repo.update(reservation=reservation.mark_expired(now=now))

        notifications: List[NotificationMessage] = []
        for line in reservation.lines:
            record = await uow.inventory_repo.get(
                event_id=reservation.event_id, ticket_type_id=line.ticket_type_id
            )
            if record is None:
                Logger.base.warning(
                    f'⚠️ [EXPIRE] No inventory for {reservation.event_id}/{line.ticket_type_id}, '
                    'skipping release and waitlist processing'
                )
                continue

            record = record.release_hold(quantity=line.quantity, now=now)
            await uow.inventory_repo.update(record=record)
            notifications.extend(
                await self.waitlist_processor.process(
                    uow=uow, inventory=record, freed_quantity=line.quantity, now=now
                )
            )

        return True, notifications
