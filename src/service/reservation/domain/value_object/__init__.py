"""Reservation Domain Value Objects"""

from src.service.reservation.domain.value_object.notification_message import (
    NotificationMessage,
    NotificationSubject,
    NotificationType,
    clean_data_payload,
)
from src.service.reservation.domain.value_object.ticket_line import TicketLine

__all__ = [
    'NotificationMessage',
    'NotificationSubject',
    'NotificationType',
    'TicketLine',
    'clean_data_payload',
]
