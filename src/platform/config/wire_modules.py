"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.reservation.app.command import (
    claim_waitlisted_tickets_use_case,
    complete_purchase_use_case,
    create_event_use_case,
    expire_reservation_use_case,
    expire_waitlist_notification_use_case,
    process_reservation_use_case,
    request_reservation_use_case,
)
from src.service.reservation.app.query import (
    get_event_use_case,
    get_inventory_use_case,
    get_reservation_use_case,
    get_waitlist_entry_use_case,
)
from src.service.reservation.driving_adapter.http_controller.auth import current_user


WIRE_MODULES: list[ModuleType] = [
    request_reservation_use_case,
    process_reservation_use_case,
    complete_purchase_use_case,
    expire_reservation_use_case,
    claim_waitlisted_tickets_use_case,
    expire_waitlist_notification_use_case,
    create_event_use_case,
    get_reservation_use_case,
    get_waitlist_entry_use_case,
    get_inventory_use_case,
    get_event_use_case,
    current_user,
]
