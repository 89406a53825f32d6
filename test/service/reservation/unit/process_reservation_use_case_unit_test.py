"""
Unit tests for ProcessReservationUseCase

Test Coverage:
1. Success: hold taken, pending reservation created, expiry task scheduled,
   "Ticket Reservation Successful" delivered and recorded as sent
2. Sold out: waitlisted, counters untouched, "Added to Waitlist" delivered
3. Partial shortage: requested quantity larger than what is left is waitlisted
4. Multi-line: all lines held together, or none when any line is short
5. Lazy inventory: first request for a ticket type creates its record
6. Failures: validation and missing event/ticket type raise, and process()
   notifies the requester with "Reservation Failed"
7. Redelivery: a request_id already processed replays its outcome without
   a second hold, waitlist entry or notification
"""

from datetime import timedelta

import pytest

from src.platform.exception.exceptions import InvalidArgumentError, NotFoundError
from src.service.reservation.app.command.process_reservation_use_case import NOT_ENOUGH_TICKETS
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.enum.reservation_status import (
    NotificationStatus,
    ReservationStatus,
)
from src.service.reservation.domain.enum.waitlist_status import WaitlistStatus
from src.service.reservation.domain.value_object.notification_message import to_epoch_millis
from src.service.reservation.domain.value_object.ticket_line import TicketLine
from test.service.reservation.fake_unit_of_work import RESERVATIONS, WAITLIST
from test.service.reservation.fixtures import HOLD_MINUTES


pytestmark = pytest.mark.unit


class TestReserveSuccess:
    @pytest.mark.asyncio
    async def test_hold_creates_pending_reservation(
        self, process_reservation_use_case, seeded_event, store, notifier, clock
    ):
        # When
        result = await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=2)],
        )

        # Then: hold taken
        assert result.success is True
        assert result.waitlisted is False
        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.total_quantity == 5
        assert inventory.available_quantity == 3
        assert inventory.reserved_quantity == 2

        # Then: pending reservation with deadline measured from now
        reservation = store.reservation(result.reservation_id)
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.expiration_time == clock() + timedelta(minutes=HOLD_MINUTES)
        assert result.expires_at == reservation.expiration_time

        # Then: expiry scheduled at the deadline
        [task] = store.tasks(DeferredTaskName.EXPIRE_RESERVATION)
        assert task.payload == {'reservation_id': reservation.id}
        assert task.run_at == reservation.expiration_time

        # Then: notified after commit and recorded
        assert notifier.titles_for('user-1') == ['Ticket Reservation Successful']
        assert reservation.notification_status == NotificationStatus.SENT

    @pytest.mark.asyncio
    async def test_exact_remaining_quantity_can_be_held(
        self, process_reservation_use_case, seeded_event, store
    ):
        # When
        result = await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=5)],
        )

        # Then
        assert result.success is True
        assert store.inventory(seeded_event.id, 'GA').available_quantity == 0

    @pytest.mark.asyncio
    async def test_reservation_time_comes_from_request_timestamp(
        self, process_reservation_use_case, seeded_event, store, clock
    ):
        # Given: request queued 3 seconds before processing
        queued_at = clock() - timedelta(seconds=3)

        # When
        result = await process_reservation_use_case.process(
            payload={
                'user_id': 'user-1',
                'event_id': seeded_event.id,
                'tickets': [{'ticket_type_id': 'GA', 'quantity': 1}],
                'timestamp': to_epoch_millis(queued_at),
            }
        )

        # Then
        reservation = store.reservation(result.reservation_id)
        assert reservation.reservation_time == queued_at
        assert reservation.expiration_time == clock() + timedelta(minutes=HOLD_MINUTES)


class TestReserveWaitlist:
    @pytest.mark.asyncio
    async def test_sold_out_request_is_waitlisted(
        self, process_reservation_use_case, seeded_event, store, notifier
    ):
        # Given: GA fully held
        await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=5)],
        )

        # When
        result = await process_reservation_use_case.reserve(
            user_id='user-2',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=1)],
        )

        # Then
        assert result.success is False
        assert result.waitlisted is True
        assert result.error == NOT_ENOUGH_TICKETS
        entry = store.waitlist_entry(result.waitlist_id)
        assert entry.status == WaitlistStatus.WAITING
        assert entry.quantity == 1
        assert entry.user_id == 'user-2'
        assert entry.notification_status == NotificationStatus.SENT

        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.available_quantity == 0
        assert inventory.reserved_quantity == 5
        assert notifier.titles_for('user-2') == ['Added to Waitlist']

    @pytest.mark.asyncio
    async def test_request_larger_than_remaining_is_waitlisted(
        self, process_reservation_use_case, seeded_event, store
    ):
        # Given: 2 of 5 left
        await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=3)],
        )

        # When
        result = await process_reservation_use_case.reserve(
            user_id='user-2',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=3)],
        )

        # Then: no partial hold
        assert result.waitlisted is True
        inventory = store.inventory(seeded_event.id, 'GA')
        assert inventory.available_quantity == 2
        assert inventory.reserved_quantity == 3


class TestReserveMultiLine:
    @pytest.mark.asyncio
    async def test_all_lines_are_held_in_one_reservation(
        self, process_reservation_use_case, seeded_event, store
    ):
        # When
        result = await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[
                TicketLine(ticket_type_id='GA', quantity=2),
                TicketLine(ticket_type_id='VIP', quantity=1),
            ],
        )

        # Then
        assert result.success is True
        reservation = store.reservation(result.reservation_id)
        assert [line.ticket_type_id for line in reservation.lines] == ['GA', 'VIP']
        assert store.inventory(seeded_event.id, 'GA').reserved_quantity == 2
        assert store.inventory(seeded_event.id, 'VIP').reserved_quantity == 1

    @pytest.mark.asyncio
    async def test_short_line_waitlists_without_holding_other_lines(
        self, process_reservation_use_case, seeded_event, store
    ):
        # When: VIP only has 2
        result = await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[
                TicketLine(ticket_type_id='GA', quantity=2),
                TicketLine(ticket_type_id='VIP', quantity=3),
            ],
        )

        # Then: waitlisted for the short line, GA untouched
        assert result.waitlisted is True
        entry = store.waitlist_entry(result.waitlist_id)
        assert entry.ticket_type_id == 'VIP'
        assert entry.quantity == 3
        assert store.inventory(seeded_event.id, 'GA').available_quantity == 5
        assert store.inventory(seeded_event.id, 'GA').reserved_quantity == 0


class TestReserveFailures:
    @pytest.mark.asyncio
    async def test_unknown_event_is_not_found(self, process_reservation_use_case, store):
        with pytest.raises(NotFoundError, match='Event not found'):
            await process_reservation_use_case.reserve(
                user_id='user-1',
                event_id='missing',
                lines=[TicketLine(ticket_type_id='GA', quantity=1)],
            )
        assert store.rows(WAITLIST) == []

    @pytest.mark.asyncio
    async def test_unknown_ticket_type_is_not_found(
        self, process_reservation_use_case, seeded_event
    ):
        with pytest.raises(NotFoundError, match='Ticket type Balcony not found'):
            await process_reservation_use_case.reserve(
                user_id='user-1',
                event_id=seeded_event.id,
                lines=[TicketLine(ticket_type_id='Balcony', quantity=1)],
            )

    @pytest.mark.asyncio
    async def test_non_positive_quantity_is_invalid(
        self, process_reservation_use_case, seeded_event, store
    ):
        with pytest.raises(InvalidArgumentError):
            await process_reservation_use_case.reserve(
                user_id='user-1',
                event_id=seeded_event.id,
                lines=[TicketLine(ticket_type_id='GA', quantity=0)],
            )
        assert store.commits == 0

    @pytest.mark.asyncio
    async def test_process_notifies_requester_on_failure(
        self, process_reservation_use_case, notifier
    ):
        # When
        with pytest.raises(NotFoundError):
            await process_reservation_use_case.process(
                payload={
                    'user_id': 'user-1',
                    'event_id': 'missing',
                    'tickets': [{'ticket_type_id': 'GA', 'quantity': 1}],
                }
            )

        # Then
        [message] = notifier.sent
        assert message.title == 'Reservation Failed'
        assert message.body == 'Reservation failed: Event not found'

    @pytest.mark.asyncio
    async def test_process_rejects_malformed_payload(self, process_reservation_use_case, notifier):
        with pytest.raises(InvalidArgumentError, match='Malformed'):
            await process_reservation_use_case.process(
                payload={'user_id': 'user-1', 'event_id': 'evt-1', 'tickets': [{'quantity': 1}]}
            )

        assert notifier.titles_for('user-1') == ['Reservation Failed']


class TestReserveReplay:
    @pytest.mark.asyncio
    async def test_redelivered_request_keeps_one_reservation(
        self, process_reservation_use_case, seeded_event, store, notifier
    ):
        # Given
        payload = {
            'request_id': 'req-1',
            'user_id': 'user-1',
            'event_id': seeded_event.id,
            'tickets': [{'ticket_type_id': 'GA', 'quantity': 2}],
        }
        first = await process_reservation_use_case.process(payload=payload)

        # When: the same task is delivered again
        second = await process_reservation_use_case.process(payload=payload)

        # Then: one hold, one reservation, one notification
        assert first.replayed is False
        assert second.replayed is True
        assert second.success is True
        assert second.reservation_id == first.reservation_id
        assert len(store.rows(RESERVATIONS)) == 1
        assert store.inventory(seeded_event.id, 'GA').reserved_quantity == 2
        assert len(store.tasks(DeferredTaskName.EXPIRE_RESERVATION)) == 1
        assert notifier.titles_for('user-1') == ['Ticket Reservation Successful']

    @pytest.mark.asyncio
    async def test_redelivered_waitlisted_request_keeps_one_entry(
        self, process_reservation_use_case, seeded_event, store, notifier
    ):
        # Given: GA sold out, user-2 waitlisted
        await process_reservation_use_case.reserve(
            user_id='user-1',
            event_id=seeded_event.id,
            lines=[TicketLine(ticket_type_id='GA', quantity=5)],
        )
        payload = {
            'request_id': 'req-2',
            'user_id': 'user-2',
            'event_id': seeded_event.id,
            'tickets': [{'ticket_type_id': 'GA', 'quantity': 1}],
        }
        first = await process_reservation_use_case.process(payload=payload)

        # When
        second = await process_reservation_use_case.process(payload=payload)

        # Then
        assert second.replayed is True
        assert second.waitlisted is True
        assert second.waitlist_id == first.waitlist_id
        assert len(store.rows(WAITLIST)) == 1
        assert notifier.titles_for('user-2') == ['Added to Waitlist']

    @pytest.mark.asyncio
    async def test_requests_without_id_are_not_deduplicated(
        self, process_reservation_use_case, seeded_event, store
    ):
        for _ in range(2):
            await process_reservation_use_case.reserve(
                user_id='user-1',
                event_id=seeded_event.id,
                lines=[TicketLine(ticket_type_id='GA', quantity=1)],
            )

        assert len(store.rows(RESERVATIONS)) == 2
        assert store.inventory(seeded_event.id, 'GA').reserved_quantity == 2
