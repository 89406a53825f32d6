"""
Unit tests for ExpireReservationUseCase and WaitlistProcessor

Test Coverage:
1. Expiry releases the hold and marks the reservation expired
2. Idempotence: missing, completed or already expired reservations are no-ops,
   and a delivery before the hold deadline only re-arms the expiry
3. Freed capacity is earmarked for waiting entries in request order
4. Strict FIFO: the scan stops at the first entry that does not fit, even when
   a smaller entry behind it would
5. Notified entries get a claim deadline, an expiry task and a notification
"""

from datetime import timedelta

import pytest

from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.enum.reservation_status import (
    NotificationStatus,
    ReservationStatus,
)
from src.service.reservation.domain.enum.waitlist_status import WaitlistStatus
from src.service.reservation.domain.value_object.ticket_line import TicketLine
from test.service.reservation.fixtures import CLAIM_MINUTES, HOLD_MINUTES


pytestmark = pytest.mark.unit


async def _reserve(use_case, event_id: str, user_id: str, quantity: int, ticket_type: str = 'GA'):
    return await use_case.reserve(
        user_id=user_id,
        event_id=event_id,
        lines=[TicketLine(ticket_type_id=ticket_type, quantity=quantity)],
    )


class TestExpireReservation:
    @pytest.mark.asyncio
    async def test_expiry_releases_hold(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        # Given
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 2)
        clock.advance(minutes=HOLD_MINUTES, seconds=1)

        # When
        expired = await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # Then
        assert expired is True
        reservation = store.reservation(held.reservation_id)
        assert reservation.status == ReservationStatus.EXPIRED
        assert reservation.expired_at == clock()
        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.available_quantity == 5
        assert inventory.reserved_quantity == 0

    @pytest.mark.asyncio
    async def test_second_expiry_is_a_no_op(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        # Given
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 2)
        clock.advance(minutes=HOLD_MINUTES, seconds=1)
        await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # When
        expired_again = await expire_reservation_use_case.execute(
            reservation_id=held.reservation_id
        )

        # Then: counters not released twice
        assert expired_again is False
        assert store.inventory(seeded_event.id, 'GA').available_quantity == 5

    @pytest.mark.asyncio
    async def test_completed_reservation_is_left_alone(
        self,
        process_reservation_use_case,
        complete_purchase_use_case,
        expire_reservation_use_case,
        seeded_event,
        store,
    ):
        # Given
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 2)
        await complete_purchase_use_case.execute(
            user_id='user-1', reservation_id=held.reservation_id
        )

        # When
        expired = await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # Then
        assert expired is False
        assert store.reservation(held.reservation_id).status == ReservationStatus.COMPLETED
        assert store.inventory(seeded_event.id, 'GA').sold_quantity == 2

    @pytest.mark.asyncio
    async def test_missing_reservation_is_a_no_op(self, expire_reservation_use_case):
        assert await expire_reservation_use_case.execute(reservation_id='missing') is False

    @pytest.mark.asyncio
    async def test_delivery_before_deadline_keeps_hold(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        # Given: one minute left on the hold
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 2)
        clock.advance(minutes=HOLD_MINUTES - 1)

        # When
        expired = await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # Then: hold intact, expiry re-armed at the deadline
        assert expired is False
        reservation = store.reservation(held.reservation_id)
        assert reservation.status == ReservationStatus.PENDING
        assert store.inventory(seeded_event.id, 'GA').reserved_quantity == 2
        tasks = store.tasks(DeferredTaskName.EXPIRE_RESERVATION)
        assert len(tasks) == 2
        assert all(t.run_at == reservation.expiration_time for t in tasks)

    @pytest.mark.asyncio
    async def test_expiry_at_deadline_releases_hold(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 2)
        clock.advance(minutes=HOLD_MINUTES)

        assert await expire_reservation_use_case.execute(reservation_id=held.reservation_id)
        assert store.inventory(seeded_event.id, 'GA').reserved_quantity == 0

    @pytest.mark.asyncio
    async def test_multi_line_expiry_releases_every_line(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        # Given
        held = await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[
                TicketLine(ticket_type_id='GA', quantity=1),
                TicketLine(ticket_type_id='VIP', quantity=2),
            ],
        )
        clock.advance(minutes=HOLD_MINUTES, seconds=1)

        # When
        await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # Then
        assert store.inventory(seeded_event.id, 'GA').available_quantity == 5
        assert store.inventory(seeded_event.id, 'VIP').available_quantity == 2


class TestWaitlistRedistribution:
    @pytest.mark.asyncio
    async def test_freed_capacity_notifies_waiting_entries_in_order(
        self,
        process_reservation_use_case,
        expire_reservation_use_case,
        seeded_event,
        store,
        notifier,
        clock,
    ):
        # Given: sold out, then two waiting entries
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 5)
        clock.advance(seconds=1)
        first = await _reserve(process_reservation_use_case, seeded_event.id, 'user-2', 2)
        clock.advance(seconds=1)
        second = await _reserve(process_reservation_use_case, seeded_event.id, 'user-3', 3)

        # When
        clock.advance(minutes=HOLD_MINUTES)
        await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # Then: both earmarked, nothing left available
        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.available_quantity == 0
        assert inventory.earmarked_quantity == 5
        assert inventory.reserved_quantity == 0

        for result in (first, second):
            entry = store.waitlist_entry(result.waitlist_id)
            assert entry.status == WaitlistStatus.NOTIFIED
            assert entry.notification_sent is True
            assert entry.notification_time == clock()
            assert entry.expiration_time == clock() + timedelta(minutes=CLAIM_MINUTES)
            assert entry.notification_status == NotificationStatus.SENT

        assert notifier.titles_for('user-2')[-1] == 'Tickets Now Available'
        assert notifier.titles_for('user-3')[-1] == 'Tickets Now Available'

        tasks = store.tasks(DeferredTaskName.EXPIRE_WAITLIST_NOTIFICATION)
        assert {t.payload['waitlist_id'] for t in tasks} == {first.waitlist_id, second.waitlist_id}
        assert all(t.run_at == clock() + timedelta(minutes=CLAIM_MINUTES) for t in tasks)

    @pytest.mark.asyncio
    async def test_scan_stops_at_first_entry_that_does_not_fit(
        self,
        process_reservation_use_case,
        expire_reservation_use_case,
        seeded_event,
        store,
        notifier,
        clock,
    ):
        # Given: 3 + 2 held, head of queue wants 3, a smaller request behind it
        await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 3)
        small_hold = await _reserve(process_reservation_use_case, seeded_event.id, 'user-4', 2)
        clock.advance(seconds=1)
        head = await _reserve(process_reservation_use_case, seeded_event.id, 'user-2', 3)
        clock.advance(seconds=1)
        behind = await _reserve(process_reservation_use_case, seeded_event.id, 'user-3', 1)

        # When: only 2 units come back
        clock.advance(minutes=HOLD_MINUTES)
        await expire_reservation_use_case.execute(reservation_id=small_hold.reservation_id)

        # Then: nobody jumps the queue
        assert store.waitlist_entry(head.waitlist_id).status == WaitlistStatus.WAITING
        assert store.waitlist_entry(behind.waitlist_id).status == WaitlistStatus.WAITING
        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.available_quantity == 2
        assert inventory.earmarked_quantity == 0
        assert 'Tickets Now Available' not in notifier.titles_for('user-3')

    @pytest.mark.asyncio
    async def test_capacity_beyond_the_queue_stays_available(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        # Given
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 5)
        clock.advance(seconds=1)
        waiting = await _reserve(process_reservation_use_case, seeded_event.id, 'user-2', 1)

        # When
        clock.advance(minutes=HOLD_MINUTES)
        await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # Then
        assert store.waitlist_entry(waiting.waitlist_id).status == WaitlistStatus.NOTIFIED
        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.earmarked_quantity == 1
        assert inventory.available_quantity == 4
        inventory.check_invariant()

    @pytest.mark.asyncio
    async def test_waitlists_are_partitioned_by_ticket_type(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        # Given: VIP sold out with a VIP waiter, GA hold about to expire
        await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 2, 'VIP')
        ga_hold = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 2)
        clock.advance(seconds=1)
        vip_waiter = await _reserve(process_reservation_use_case, seeded_event.id, 'user-2', 1, 'VIP')

        # When
        clock.advance(minutes=HOLD_MINUTES)
        await expire_reservation_use_case.execute(reservation_id=ga_hold.reservation_id)

        # Then: GA capacity is not offered to the VIP queue
        assert store.waitlist_entry(vip_waiter.waitlist_id).status == WaitlistStatus.WAITING
        assert store.inventory(seeded_event.id, 'GA').available_quantity == 5

    @pytest.mark.asyncio
    async def test_fifo_offers_only_the_head_when_the_next_entry_does_not_fit(
        self, process_reservation_use_case, expire_reservation_use_case, seeded_event, store, clock
    ):
        # Given: 4 + 1 held, queue wants 2, 3, 1
        held = await _reserve(process_reservation_use_case, seeded_event.id, 'user-1', 4)
        await _reserve(process_reservation_use_case, seeded_event.id, 'user-9', 1)
        queue = []
        for user_id, quantity in (('user-2', 2), ('user-3', 3), ('user-4', 1)):
            clock.advance(seconds=1)
            queue.append(
                await _reserve(process_reservation_use_case, seeded_event.id, user_id, quantity)
            )

        # When: 4 units come back
        clock.advance(minutes=HOLD_MINUTES)
        await expire_reservation_use_case.execute(reservation_id=held.reservation_id)

        # Then: head takes 2, the 3 blocks the queue, the trailing 1 waits its turn
        assert [store.waitlist_entry(r.waitlist_id).status for r in queue] == [
            WaitlistStatus.NOTIFIED,
            WaitlistStatus.WAITING,
            WaitlistStatus.WAITING,
        ]
        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.earmarked_quantity == 2
        assert inventory.available_quantity == 2
        inventory.check_invariant()
