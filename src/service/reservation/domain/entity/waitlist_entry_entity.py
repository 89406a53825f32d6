from datetime import datetime, timedelta
from typing import Optional

import attrs
import uuid_utils

from src.platform.exception.exceptions import FailedPreconditionError, PermissionDeniedError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.domain.enum.reservation_status import NotificationStatus
from src.service.reservation.domain.enum.waitlist_status import WaitlistStatus


@attrs.define
class WaitlistEntry:
    id: str
    user_id: str
    event_id: str
    ticket_type_id: str
    quantity: int
    request_time: datetime
    notification_sent: bool = False
    notification_time: Optional[datetime] = None
    expiration_time: Optional[datetime] = None
    status: WaitlistStatus = WaitlistStatus.WAITING
    notification_status: NotificationStatus = NotificationStatus.PENDING
    claimed_reservation_id: Optional[str] = None
    request_id: Optional[str] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        user_id: str,
        event_id: str,
        ticket_type_id: str,
        quantity: int,
        request_time: datetime,
        request_id: Optional[str] = None,
    ) -> 'WaitlistEntry':
        return cls(
            id=str(uuid_utils.uuid7()),
            user_id=user_id,
            event_id=event_id,
            ticket_type_id=ticket_type_id,
            quantity=quantity,
            request_time=request_time,
            request_id=request_id,
        )

    @property
    def is_notified(self) -> bool:
        return self.status == WaitlistStatus.NOTIFIED

    def is_claim_window_lapsed(self, now: datetime) -> bool:
        return self.expiration_time is not None and now > self.expiration_time

    def validate_owner(self, user_id: str) -> None:
        if self.user_id != user_id:
            raise PermissionDeniedError('Waitlist entry does not belong to this user')

    def validate_can_claim(self) -> None:
        if self.status != WaitlistStatus.NOTIFIED:
            raise FailedPreconditionError(f'Waitlist status is {self.status.value}')

    @Logger.io
    def mark_notified(self, *, now: datetime, claim_minutes: int) -> 'WaitlistEntry':
        return attrs.evolve(
            self,
            status=WaitlistStatus.NOTIFIED,
            notification_sent=True,
            notification_time=now,
            expiration_time=now + timedelta(minutes=claim_minutes),
        )

    @Logger.io
    def mark_expired(self) -> 'WaitlistEntry':
        return attrs.evolve(self, status=WaitlistStatus.EXPIRED)

    @Logger.io
    def mark_claimed(self, *, reservation_id: str) -> 'WaitlistEntry':
        return attrs.evolve(
            self, status=WaitlistStatus.CLAIMED, claimed_reservation_id=reservation_id
        )
