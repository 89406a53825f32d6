"""
Unit tests for DeferredTaskWorker

Test Coverage:
1. Due tasks are leased, handed to their handler and marked done
2. Tasks scheduled in the future are not claimed early
3. Permanent failures (4xx-type errors) fail without retry
4. Transient failures retry with exponential backoff until max_attempts
5. A running task whose lease lapsed is claimed again
6. End to end: queued request -> reservation -> expiry through the worker
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.platform.exception.exceptions import NotFoundError
from src.service.reservation.domain.enum.deferred_task import (
    DeferredTaskName,
    DeferredTaskStatus,
)
from src.service.reservation.domain.enum.reservation_status import ReservationStatus
from src.service.reservation.domain.value_object.ticket_line import TicketLine
from src.service.reservation.driving_adapter.task_worker.deferred_task_worker import (
    DeferredTaskWorker,
    is_permanent_failure,
)
from test.service.reservation.fake_unit_of_work import RESERVATIONS
from test.service.reservation.fixtures import HOLD_MINUTES


pytestmark = pytest.mark.unit


async def _schedule(runner, *, task_name, payload, run_at):
    async def work(uow):
        return await uow.task_scheduler.schedule(task_name=task_name, payload=payload, run_at=run_at)

    return await runner.run(work)


def _worker(runner, clock, handlers, **overrides) -> DeferredTaskWorker:
    params = {
        'runner': runner,
        'handlers': handlers,
        'clock': clock,
        'poll_interval': 0.01,
        'batch_size': 10,
        'lease_seconds': 60,
        'max_attempts': 3,
        'retry_base_delay': 2.0,
    }
    params.update(overrides)
    return DeferredTaskWorker(**params)


class TestDeferredTaskWorker:
    @pytest.mark.asyncio
    async def test_due_task_is_executed_and_marked_done(self, runner, clock, store):
        # Given
        handler = AsyncMock(return_value=True)
        task = await _schedule(
            runner,
            task_name=DeferredTaskName.EXPIRE_RESERVATION,
            payload={'reservation_id': 'res-1'},
            run_at=clock(),
        )
        worker = _worker(runner, clock, {DeferredTaskName.EXPIRE_RESERVATION: handler})

        # When
        processed = await worker.run_once()

        # Then
        assert processed == 1
        handler.assert_awaited_once_with({'reservation_id': 'res-1'})
        [stored] = store.tasks()
        assert stored.id == task.id
        assert stored.status == DeferredTaskStatus.DONE
        assert stored.attempts == 1
        assert stored.locked_until is None

    @pytest.mark.asyncio
    async def test_future_task_is_not_claimed(self, runner, clock, store):
        # Given
        handler = AsyncMock()
        await _schedule(
            runner,
            task_name=DeferredTaskName.EXPIRE_RESERVATION,
            payload={'reservation_id': 'res-1'},
            run_at=clock() + timedelta(minutes=HOLD_MINUTES),
        )
        worker = _worker(runner, clock, {DeferredTaskName.EXPIRE_RESERVATION: handler})

        # When
        processed = await worker.run_once()

        # Then
        assert processed == 0
        handler.assert_not_awaited()
        assert store.tasks()[0].status == DeferredTaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_permanent_failure_is_not_retried(self, runner, clock, store):
        # Given
        handler = AsyncMock(side_effect=NotFoundError('Event not found'))
        await _schedule(
            runner,
            task_name=DeferredTaskName.PROCESS_RESERVATION,
            payload={'user_id': 'user-1'},
            run_at=clock(),
        )
        worker = _worker(runner, clock, {DeferredTaskName.PROCESS_RESERVATION: handler})

        # When
        await worker.run_once()

        # Then
        [stored] = store.tasks()
        assert stored.status == DeferredTaskStatus.FAILED
        assert stored.last_error == 'NotFoundError: Event not found'

    @pytest.mark.asyncio
    async def test_transient_failure_retries_with_backoff(self, runner, clock, store):
        # Given
        handler = AsyncMock(side_effect=[RuntimeError('database unavailable'), True])
        await _schedule(
            runner,
            task_name=DeferredTaskName.EXPIRE_RESERVATION,
            payload={'reservation_id': 'res-1'},
            run_at=clock(),
        )
        worker = _worker(runner, clock, {DeferredTaskName.EXPIRE_RESERVATION: handler})

        # When: first attempt fails
        await worker.run_once()

        # Then: back to pending, due after the base delay
        [stored] = store.tasks()
        assert stored.status == DeferredTaskStatus.PENDING
        assert stored.attempts == 1
        assert stored.run_at == clock() + timedelta(seconds=2)
        assert 'database unavailable' in stored.last_error

        # When: not yet due, then due
        assert await worker.run_once() == 0
        clock.advance(seconds=2)
        assert await worker.run_once() == 1

        # Then
        [stored] = store.tasks()
        assert stored.status == DeferredTaskStatus.DONE
        assert stored.attempts == 2

    @pytest.mark.asyncio
    async def test_task_fails_after_max_attempts(self, runner, clock, store):
        # Given
        handler = AsyncMock(side_effect=RuntimeError('still down'))
        await _schedule(
            runner,
            task_name=DeferredTaskName.EXPIRE_RESERVATION,
            payload={'reservation_id': 'res-1'},
            run_at=clock(),
        )
        worker = _worker(
            runner, clock, {DeferredTaskName.EXPIRE_RESERVATION: handler}, max_attempts=2
        )

        # When
        await worker.run_once()
        clock.advance(minutes=1)
        await worker.run_once()

        # Then
        [stored] = store.tasks()
        assert stored.status == DeferredTaskStatus.FAILED
        assert stored.attempts == 2
        assert handler.await_count == 2

    @pytest.mark.asyncio
    async def test_task_without_handler_fails(self, runner, clock, store):
        await _schedule(
            runner,
            task_name=DeferredTaskName.EXPIRE_WAITLIST_NOTIFICATION,
            payload={'waitlist_id': 'wl-1'},
            run_at=clock(),
        )
        worker = _worker(runner, clock, {})

        await worker.run_once()

        [stored] = store.tasks()
        assert stored.status == DeferredTaskStatus.FAILED
        assert 'No handler' in stored.last_error

    @pytest.mark.asyncio
    async def test_lapsed_lease_is_claimed_again(self, runner, clock, store):
        # Given: a worker leased the task and died
        await _schedule(
            runner,
            task_name=DeferredTaskName.EXPIRE_RESERVATION,
            payload={'reservation_id': 'res-1'},
            run_at=clock(),
        )

        async def claim(uow):
            return await uow.deferred_task_repo.claim_due(now=clock(), limit=10, lease_seconds=60)

        [leased] = await runner.run(claim)
        assert leased.status == DeferredTaskStatus.RUNNING
        assert await runner.run(claim) == []

        # When: the lease lapses
        clock.advance(seconds=61)
        handler = AsyncMock(return_value=True)
        worker = _worker(runner, clock, {DeferredTaskName.EXPIRE_RESERVATION: handler})
        processed = await worker.run_once()

        # Then
        assert processed == 1
        [stored] = store.tasks()
        assert stored.status == DeferredTaskStatus.DONE
        assert stored.attempts == 2

    def test_permanent_failure_classification(self):
        assert is_permanent_failure(NotFoundError('x')) is True
        assert is_permanent_failure(RuntimeError('x')) is False


class TestWorkerEndToEnd:
    @pytest.mark.asyncio
    async def test_queued_request_is_reserved_then_expired(
        self,
        runner,
        clock,
        store,
        seeded_event,
        request_reservation_use_case,
        process_reservation_use_case,
        expire_reservation_use_case,
    ):
        # Given
        async def handle_process(payload):
            return await process_reservation_use_case.process(payload=payload)

        async def handle_expire(payload):
            return await expire_reservation_use_case.execute(
                reservation_id=payload['reservation_id']
            )

        worker = _worker(
            runner,
            clock,
            {
                DeferredTaskName.PROCESS_RESERVATION: handle_process,
                DeferredTaskName.EXPIRE_RESERVATION: handle_expire,
            },
        )
        await request_reservation_use_case.execute(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=2)],
        )

        # When: intake task runs
        assert await worker.run_once() == 1

        # Then: pending reservation, expiry queued for the deadline
        [reservation] = store.rows(RESERVATIONS)
        assert reservation.status == ReservationStatus.PENDING
        assert store.inventory(seeded_event.id, 'GA').reserved_quantity == 2

        # When: the deadline passes
        clock.advance(minutes=HOLD_MINUTES, seconds=1)
        assert await worker.run_once() == 1

        # Then
        assert store.reservation(reservation.id).status == ReservationStatus.EXPIRED
        assert store.inventory(seeded_event.id, 'GA').available_quantity == 5
        assert all(t.status == DeferredTaskStatus.DONE for t in store.tasks())
