from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.app.service.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.service.waitlist_processor import WaitlistProcessor
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.value_object.notification_message import NotificationMessage


class ExpireWaitlistNotificationUseCase:
    """
    Close a lapsed claim window: the entry expires, its earmark returns to
    available and is offered to the next waiting entries in the same transaction.

    Idempotent no-op when the entry is missing or no longer notified. Before the
    window closes nothing is released and the expiry is re-armed at the deadline.
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
    async def execute(self, *, waitlist_id: str) -> bool:
        with self.tracer.start_as_current_span(
            'use_case.expire_waitlist_notification', attributes={'waitlist.id': waitlist_id}
        ):

            async def work(uow: AbstractUnitOfWork) -> tuple[bool, List[NotificationMessage]]:
                now = self.clock()
                entry = await uow.waitlist_repo.get_by_id(waitlist_id=waitlist_id)
                if entry is None or not entry.is_notified:
                    Logger.base.info(
                        f'[WAITLIST] Entry {waitlist_id} missing or already resolved, skipping'
                    )
                    return False, []
                if entry.expiration_time is not None and now < entry.expiration_time:
                    await uow.task_scheduler.schedule(
                        task_name=DeferredTaskName.EXPIRE_WAITLIST_NOTIFICATION,
                        payload={'waitlist_id': entry.id},
                        run_at=entry.expiration_time,
                    )
                    Logger.base.info(
                        f'[WAITLIST] Claim window of {waitlist_id} open until '
                        f'{entry.expiration_time.isoformat()}, rescheduled'
                    )
                    return False, []
                notifications = await self.waitlist_processor.expire_entry(
                    uow=uow, entry=entry, now=now
                )
                return True, notifications

            expired, notifications = await self.runner.run(
                work, name='expire_waitlist_notification'
            )

        if expired:
            Logger.base.info(f'⌛ [WAITLIST] Claim window of {waitlist_id} lapsed')
        await self.dispatcher.dispatch(notifications)
        return expired
