"""
Notification messages sent through INotifier after a transaction commits.

Payload values are flattened to strings (push gateways only accept string maps),
and None values are dropped.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

import attrs


class NotificationType(StrEnum):
    TICKET_RESERVATION = 'TICKET_RESERVATION'
    TICKET_RESERVATION_FAILED = 'TICKET_RESERVATION_FAILED'
    WAITLIST_NOTIFICATION = 'WAITLIST_NOTIFICATION'


class NotificationSubject(StrEnum):
    """Record that carries the notification_status for a message"""

    RESERVATION = 'reservation'
    WAITLIST_ENTRY = 'waitlist_entry'


def clean_data_payload(data: dict[str, Any]) -> dict[str, str]:
    cleaned: dict[str, str] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = 'true' if value else 'false'
        elif isinstance(value, datetime):
            cleaned[key] = str(to_epoch_millis(value))
        else:
            cleaned[key] = str(value)
    return cleaned


def to_epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


@attrs.frozen
class NotificationMessage:
    user_id: str
    title: str
    body: str
    data: dict[str, str] = attrs.field(factory=dict)
    subject: Optional[NotificationSubject] = None
    subject_id: Optional[str] = None

    @classmethod
    def reservation_succeeded(
        cls, *, user_id: str, reservation_id: str, expires_at: datetime, hold_minutes: int
    ) -> 'NotificationMessage':
        return cls(
            user_id=user_id,
            title='Ticket Reservation Successful',
            body=f'You have {hold_minutes} minutes to complete your purchase.',
            data=clean_data_payload(
                {
                    'type': NotificationType.TICKET_RESERVATION,
                    'reservationId': reservation_id,
                    'expiresAt': expires_at,
                }
            ),
            subject=NotificationSubject.RESERVATION,
            subject_id=reservation_id,
        )

    @classmethod
    def reservation_waitlisted(
        cls, *, user_id: str, waitlist_id: str, error: str
    ) -> 'NotificationMessage':
        return cls(
            user_id=user_id,
            title='Added to Waitlist',
            body='All tickets are currently sold out. You have been added to the waitlist.',
            data=clean_data_payload(
                {
                    'type': NotificationType.TICKET_RESERVATION_FAILED,
                    'error': error,
                    'waitlisted': True,
                    'waitlistId': waitlist_id,
                }
            ),
            subject=NotificationSubject.WAITLIST_ENTRY,
            subject_id=waitlist_id,
        )

    @classmethod
    def reservation_failed(cls, *, user_id: str, error: str | None) -> 'NotificationMessage':
        return cls(
            user_id=user_id,
            title='Reservation Failed',
            body=f'Reservation failed: {error or "Unknown error"}',
            data=clean_data_payload(
                {
                    'type': NotificationType.TICKET_RESERVATION_FAILED,
                    'error': error,
                    'waitlisted': False,
                }
            ),
        )

    @classmethod
    def waitlist_tickets_available(
        cls, *, user_id: str, waitlist_id: str, expires_at: datetime, claim_minutes: int
    ) -> 'NotificationMessage':
        return cls(
            user_id=user_id,
            title='Tickets Now Available',
            body=(
                'Tickets are now available for your waitlisted event. '
                f'You have {claim_minutes} minutes to complete your purchase.'
            ),
            data=clean_data_payload(
                {
                    'type': NotificationType.WAITLIST_NOTIFICATION,
                    'waitlistId': waitlist_id,
                    'expiresAt': expires_at,
                }
            ),
            subject=NotificationSubject.WAITLIST_ENTRY,
            subject_id=waitlist_id,
        )
