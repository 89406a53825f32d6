from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
import uuid_utils

from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.dto.reservation_result_dto import RequestReservationResult
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.value_object.notification_message import to_epoch_millis
from src.service.reservation.domain.value_object.ticket_line import (
    TicketLine,
    validate_reservation_request,
)


QUEUED_MESSAGE = 'Reservation request queued for processing'


class RequestReservationUseCase:
    """
    Asynchronous intake: validate, then queue a process_reservation task due now

    The request timestamp travels in the payload and becomes the reservation's
    reservation_time when the task runs.
    A request_id travels with it so a redelivered task resolves to the
    reservation or waitlist entry the first delivery created.
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
    async def execute(
        self, *, user_id: str, event_id: str, lines: List[TicketLine]
    ) -> RequestReservationResult:
        validate_reservation_request(event_id=event_id, lines=lines)

        with self.tracer.start_as_current_span(
            'use_case.request_reservation',
            attributes={'event.id': event_id, 'user.id': user_id},
        ):
            now = self.clock()
            payload = {
                # Stable across redeliveries of this task; processing dedupes on it
                'request_id': str(uuid_utils.uuid7()),
                'user_id': user_id,
                'event_id': event_id,
                'tickets': [line.to_dict() for line in lines],
                'timestamp': to_epoch_millis(now),
            }

            async def work(uow: AbstractUnitOfWork) -> str:
                task = await uow.task_scheduler.schedule(
                    task_name=DeferredTaskName.PROCESS_RESERVATION,
                    payload=payload,
                    run_at=now,
                )
                return task.id

            task_id = await self.runner.run(work, name='request_reservation')

        Logger.base.info(f'📨 [INTAKE] Queued reservation request {task_id} for user {user_id}')
        return RequestReservationResult(success=True, message=QUEUED_MESSAGE, task_id=task_id)
