"""
Deferred Task Worker - in-process scheduler for the reservation engine

Polls the deferred_task table, leases due tasks and dispatches them to the
engine handlers:
- process_reservation          -> ProcessReservationUseCase.process
- expire_reservation           -> ExpireReservationUseCase.execute
- expire_waitlist_notification -> ExpireWaitlistNotificationUseCase.execute

Delivery is at-least-once: a worker that dies mid-task leaves a running task
whose lease lapses and is claimed again. Every handler is idempotent, so
duplicate or late executions are harmless.

Outcome per task:
- handler returned             -> done
- permanent failure (4xx-type) -> failed, no retry
- anything else                -> pending again with exponential backoff,
                                  failed once TASK_MAX_ATTEMPTS is reached
"""

from datetime import timedelta
from typing import Any, Awaitable, Callable, Mapping, Optional

import anyio

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.transaction_runner import TransactionRunner
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import (
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics
from src.service.reservation.app.command.expire_reservation_use_case import (
    ExpireReservationUseCase,
)
from src.service.reservation.app.command.expire_waitlist_notification_use_case import (
    ExpireWaitlistNotificationUseCase,
)
from src.service.reservation.app.command.process_reservation_use_case import (
    ProcessReservationUseCase,
)
from src.service.reservation.app.service.clock import Clock, utc_now
from src.service.reservation.domain.entity.deferred_task_entity import DeferredTask
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName


TaskHandler = Callable[[dict[str, Any]], Awaitable[Any]]

PERMANENT_FAILURES = (
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    FailedPreconditionError,
)


def is_permanent_failure(error: BaseException) -> bool:
    return isinstance(error, PERMANENT_FAILURES)


def _require(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not value:
        raise InvalidArgumentError(f'Task payload is missing {key}')
    return str(value)


class DeferredTaskWorker:
    def __init__(
        self,
        *,
        runner: TransactionRunner,
        handlers: Mapping[DeferredTaskName, TaskHandler],
        clock: Clock = utc_now,
        poll_interval: Optional[float] = None,
        batch_size: Optional[int] = None,
        lease_seconds: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ) -> None:
        self.runner = runner
        self.handlers = dict(handlers)
        self.clock = clock
        self.poll_interval = poll_interval or settings.TASK_WORKER_POLL_INTERVAL
        self.batch_size = batch_size or settings.TASK_WORKER_BATCH_SIZE
        self.lease_seconds = lease_seconds or settings.TASK_LEASE_SECONDS
        self.max_attempts = max_attempts or settings.TASK_MAX_ATTEMPTS
        self.retry_base_delay = (
            settings.TASK_RETRY_BASE_DELAY if retry_base_delay is None else retry_base_delay
        )
        self.running = False

    async def run_forever(self) -> None:
        """Poll until cancelled (lifespan shutdown cancels the task group)"""
        self.running = True
        Logger.base.info(
            f'⏰ [TASK-WORKER] Started (poll every {self.poll_interval}s, '
            f'batch {self.batch_size}, lease {self.lease_seconds}s)'
        )
        try:
            while self.running:
                try:
                    processed = await self.run_once()
                except Exception as e:
                    # A failed poll must not stop the scheduler; the next poll retries
                    Logger.base.exception(f'❌ [TASK-WORKER] Poll failed: {e}')
                    processed = 0
                if processed == 0:
                    await anyio.sleep(self.poll_interval)
        finally:
            self.running = False
            Logger.base.info('🛑 [TASK-WORKER] Stopped')

    async def run_once(self) -> int:
        """
        Lease one batch of due tasks and execute them in run_at order

        Returns:
            Number of tasks executed
        """
        now = self.clock()

        async def claim(uow: AbstractUnitOfWork) -> list[DeferredTask]:
            return await uow.deferred_task_repo.claim_due(
                now=now, limit=self.batch_size, lease_seconds=self.lease_seconds
            )

        tasks = await self.runner.run(claim, name='claim_deferred_tasks')
        for task in tasks:
            await self.execute(task)
        return len(tasks)

    async def execute(self, task: DeferredTask) -> DeferredTask:
        handler = self.handlers.get(task.task_name)
        if handler is None:
            return await self._record(task.mark_failed(error=f'No handler for {task.task_name}'))

        try:
            await handler(task.payload)
        except Exception as e:
            return await self._record(self._on_failure(task, e))

        reservation_metrics.record_deferred_task(task_name=task.task_name.value, result='done')
        return await self._record(task.mark_done())

    def _on_failure(self, task: DeferredTask, error: Exception) -> DeferredTask:
        message = f'{type(error).__name__}: {error}'

        if is_permanent_failure(error) or task.attempts >= self.max_attempts:
            reservation_metrics.record_deferred_task(
                task_name=task.task_name.value, result='failed'
            )
            Logger.base.error(
                f'💀 [TASK-WORKER] {task.task_name.value} {task.id} failed permanently '
                f'after {task.attempts} attempt(s): {message}'
            )
            return task.mark_failed(error=message)

        delay = self.retry_base_delay * (2 ** (task.attempts - 1))
        reservation_metrics.record_deferred_task(task_name=task.task_name.value, result='retry')
        Logger.base.warning(
            f'🔁 [TASK-WORKER] {task.task_name.value} {task.id} attempt {task.attempts} failed, '
            f'retrying in {delay:.1f}s: {message}'
        )
        return task.retry_later(error=message, run_at=self.clock() + timedelta(seconds=delay))

    async def _record(self, task: DeferredTask) -> DeferredTask:
        async def work(uow: AbstractUnitOfWork) -> DeferredTask:
            return await uow.deferred_task_repo.update(task=task)

        return await self.runner.run(work, name='record_deferred_task')


def build_task_handlers(container: Container) -> dict[DeferredTaskName, TaskHandler]:
    runner = container.transaction_runner()
    dispatcher = container.notification_dispatcher()
    waitlist_processor = container.waitlist_processor()
    clock = container.clock()

    process_reservation = ProcessReservationUseCase(
        runner=runner, dispatcher=dispatcher, clock=clock
    )
    expire_reservation = ExpireReservationUseCase(
        runner=runner, dispatcher=dispatcher, waitlist_processor=waitlist_processor, clock=clock
    )
    expire_waitlist_notification = ExpireWaitlistNotificationUseCase(
        runner=runner, dispatcher=dispatcher, waitlist_processor=waitlist_processor, clock=clock
    )

    async def handle_process_reservation(payload: dict[str, Any]) -> Any:
        return await process_reservation.process(payload=payload)

    async def handle_expire_reservation(payload: dict[str, Any]) -> Any:
        return await expire_reservation.execute(
            reservation_id=_require(payload, 'reservation_id')
        )

    async def handle_expire_waitlist_notification(payload: dict[str, Any]) -> Any:
        return await expire_waitlist_notification.execute(
            waitlist_id=_require(payload, 'waitlist_id')
        )

    return {
        DeferredTaskName.PROCESS_RESERVATION: handle_process_reservation,
        DeferredTaskName.EXPIRE_RESERVATION: handle_expire_reservation,
        DeferredTaskName.EXPIRE_WAITLIST_NOTIFICATION: handle_expire_waitlist_notification,
    }


def create_deferred_task_worker(container: Container) -> DeferredTaskWorker:
    return DeferredTaskWorker(
        runner=container.transaction_runner(),
        handlers=build_task_handlers(container),
        clock=container.clock(),
    )
