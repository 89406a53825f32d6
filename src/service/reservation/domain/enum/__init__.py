"""Reservation Domain Enums"""

from src.service.reservation.domain.enum.deferred_task import DeferredTaskName, DeferredTaskStatus
from src.service.reservation.domain.enum.reservation_status import (
    NotificationStatus,
    ReservationStatus,
)
from src.service.reservation.domain.enum.ticket_status import TicketStatus
from src.service.reservation.domain.enum.waitlist_status import WaitlistStatus

__all__ = [
    'DeferredTaskName',
    'DeferredTaskStatus',
    'NotificationStatus',
    'ReservationStatus',
    'TicketStatus',
    'WaitlistStatus',
]
