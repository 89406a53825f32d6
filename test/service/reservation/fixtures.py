"""
Reservation engine fixtures

Use cases are wired to an InMemoryStore through FakeUnitOfWork, a FakeClock
pinned to `now` and a FakeNotifier, so unit tests run without a database.
"""

from datetime import datetime, timezone

import pytest

from src.platform.database.transaction_runner import TransactionRunner
from src.service.reservation.app.command.claim_waitlisted_tickets_use_case import (
    ClaimWaitlistedTicketsUseCase,
)
from src.service.reservation.app.command.complete_purchase_use_case import (
    CompletePurchaseUseCase,
)
from src.service.reservation.app.command.expire_reservation_use_case import (
    ExpireReservationUseCase,
)
from src.service.reservation.app.command.expire_waitlist_notification_use_case import (
    ExpireWaitlistNotificationUseCase,
)
from src.service.reservation.app.command.process_reservation_use_case import (
    ProcessReservationUseCase,
)
from src.service.reservation.app.command.request_reservation_use_case import (
    RequestReservationUseCase,
)
from src.service.reservation.app.service.notification_dispatcher import NotificationDispatcher
from src.service.reservation.app.service.waitlist_processor import WaitlistProcessor
from src.service.reservation.domain.entity.event_definition_entity import EventDefinition
from test.service.reservation.fake_unit_of_work import EVENTS, InMemoryStore, fake_uow_factory
from test.service.reservation.fakes import FakeClock, FakeNotifier, build_event_definition


HOLD_MINUTES = 10
CLAIM_MINUTES = 30


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now: datetime) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store: InMemoryStore):
    return fake_uow_factory(store)


@pytest.fixture
def runner(uow_factory) -> TransactionRunner:
    return TransactionRunner(uow_factory=uow_factory, max_attempts=50, base_delay=0)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def dispatcher(notifier: FakeNotifier, uow_factory) -> NotificationDispatcher:
    return NotificationDispatcher(notifier=notifier, uow_factory=uow_factory)


@pytest.fixture
def waitlist_processor() -> WaitlistProcessor:
    return WaitlistProcessor(batch_size=10, claim_minutes=CLAIM_MINUTES)


@pytest.fixture
def seeded_event(store: InMemoryStore, fixed_now: datetime) -> EventDefinition:
    """Event with GA (5 units) and VIP (2 units), no inventory rows yet"""
    event = build_event_definition(now=fixed_now, ticket_types={'GA': 5, 'VIP': 2})
    store.seed(EVENTS, event.id, event)
    return event


@pytest.fixture
def process_reservation_use_case(runner, dispatcher, clock) -> ProcessReservationUseCase:
    return ProcessReservationUseCase(
        runner=runner, dispatcher=dispatcher, clock=clock, hold_minutes=HOLD_MINUTES
    )


@pytest.fixture
def request_reservation_use_case(runner, clock) -> RequestReservationUseCase:
    return RequestReservationUseCase(runner=runner, clock=clock)


@pytest.fixture
def complete_purchase_use_case(runner, clock) -> CompletePurchaseUseCase:
    return CompletePurchaseUseCase(runner=runner, clock=clock)


@pytest.fixture
def expire_reservation_use_case(
    runner, dispatcher, waitlist_processor, clock
) -> ExpireReservationUseCase:
    return ExpireReservationUseCase(
        runner=runner, dispatcher=dispatcher, waitlist_processor=waitlist_processor, clock=clock
    )


@pytest.fixture
def expire_waitlist_notification_use_case(
    runner, dispatcher, waitlist_processor, clock
) -> ExpireWaitlistNotificationUseCase:
    return ExpireWaitlistNotificationUseCase(
        runner=runner, dispatcher=dispatcher, waitlist_processor=waitlist_processor, clock=clock
    )


@pytest.fixture
def claim_waitlisted_tickets_use_case(
    runner, dispatcher, waitlist_processor, clock
) -> ClaimWaitlistedTicketsUseCase:
    return ClaimWaitlistedTicketsUseCase(
        runner=runner,
        dispatcher=dispatcher,
        waitlist_processor=waitlist_processor,
        clock=clock,
        hold_minutes=HOLD_MINUTES,
    )
