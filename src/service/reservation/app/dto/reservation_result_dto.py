"""Reservation engine result DTOs."""

from datetime import datetime
from typing import List, Optional

import attrs

from src.service.reservation.domain.value_object.notification_message import NotificationMessage


@attrs.define(frozen=True)
class ReserveResult:
    """
    Outcome of one reservation attempt.

    Exactly one of reservation_id (success) or waitlist_id (waitlisted) is set.
    notifications are delivered after the transaction commits.
    """

    success: bool
    reservation_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    waitlisted: bool = False
    waitlist_id: Optional[str] = None
    error: Optional[str] = None
    # True when the request had already been processed and nothing new was written
    replayed: bool = False
    notifications: List[NotificationMessage] = attrs.field(factory=list, repr=False)


@attrs.define(frozen=True)
class CompletePurchaseResult:
    success: bool
    ticket_count: int
    ticket_ids: List[str] = attrs.field(factory=list)


@attrs.define(frozen=True)
class ClaimWaitlistResult:
    success: bool
    reservation_id: str
    expires_at: datetime


@attrs.define(frozen=True)
class RequestReservationResult:
    success: bool
    message: str
    task_id: Optional[str] = None
