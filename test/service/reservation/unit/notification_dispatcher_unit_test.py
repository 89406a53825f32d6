"""
Unit tests for NotificationDispatcher

Test Coverage:
1. Delivery success is recorded as notification_status=sent
2. Delivery failure is logged and recorded as failed, never raised
3. Messages without a subject are delivered without touching storage
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.service.reservation.app.service.notification_dispatcher import NotificationDispatcher
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.reservation.domain.enum.reservation_status import NotificationStatus
from src.service.reservation.domain.value_object.notification_message import NotificationMessage
from src.service.reservation.domain.value_object.ticket_line import TicketLine
from test.service.reservation.fake_unit_of_work import RESERVATIONS, fake_uow_factory
from test.service.reservation.fakes import FakeNotifier


pytestmark = pytest.mark.unit

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def stored_reservation(store) -> Reservation:
    reservation = Reservation.create(
        user_id='user-1',
        event_id='evt-1',
        lines=[TicketLine(ticket_type_id='GA', quantity=1)],
        reservation_time=NOW,
        now=NOW,
        hold_minutes=10,
    )
    store.seed(RESERVATIONS, reservation.id, reservation)
    return reservation


def _success_message(reservation: Reservation) -> NotificationMessage:
    return NotificationMessage.reservation_succeeded(
        user_id=reservation.user_id,
        reservation_id=reservation.id,
        expires_at=NOW + timedelta(minutes=10),
        hold_minutes=10,
    )


class TestNotificationDispatcher:
    @pytest.mark.asyncio
    async def test_delivered_message_is_recorded_as_sent(self, store, stored_reservation):
        # Given
        notifier = FakeNotifier()
        dispatcher = NotificationDispatcher(notifier=notifier, uow_factory=fake_uow_factory(store))

        # When
        await dispatcher.dispatch([_success_message(stored_reservation)])

        # Then
        assert len(notifier.sent) == 1
        assert store.reservation(stored_reservation.id).notification_status == NotificationStatus.SENT

    @pytest.mark.asyncio
    async def test_failed_delivery_is_recorded_not_raised(self, store, stored_reservation):
        # Given
        dispatcher = NotificationDispatcher(
            notifier=FakeNotifier(fail=True), uow_factory=fake_uow_factory(store)
        )

        # When
        await dispatcher.dispatch([_success_message(stored_reservation)])

        # Then
        assert (
            store.reservation(stored_reservation.id).notification_status
            == NotificationStatus.FAILED
        )

    @pytest.mark.asyncio
    async def test_message_without_subject_skips_status_update(self, store):
        # Given
        notifier = FakeNotifier()
        dispatcher = NotificationDispatcher(notifier=notifier, uow_factory=fake_uow_factory(store))

        # When
        await dispatcher.dispatch(
            [NotificationMessage.reservation_failed(user_id='user-1', error='Event not found')]
        )

        # Then
        assert notifier.titles_for('user-1') == ['Reservation Failed']
        assert store.commits == 0

    @pytest.mark.asyncio
    async def test_status_update_for_missing_record_is_swallowed(self, store):
        # Given: the reservation row does not exist
        notifier = FakeNotifier()
        dispatcher = NotificationDispatcher(notifier=notifier, uow_factory=fake_uow_factory(store))
        message = NotificationMessage.reservation_succeeded(
            user_id='user-1', reservation_id='missing', expires_at=NOW, hold_minutes=10
        )

        # When
        await dispatcher.dispatch([message])

        # Then
        assert len(notifier.sent) == 1
