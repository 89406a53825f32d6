from datetime import datetime, timedelta
from typing import List, Optional

import attrs
import uuid_utils

from src.platform.exception.exceptions import (
    FailedPreconditionError,
    InvalidArgumentError,
    PermissionDeniedError,
)
from src.platform.logging.loguru_io import Logger
from src.service.reservation.domain.enum.reservation_status import (
    NotificationStatus,
    ReservationStatus,
)
from src.service.reservation.domain.value_object.ticket_line import TicketLine


@attrs.define
class Reservation:
    id: str
    user_id: str
    event_id: str
    lines: List[TicketLine]
    reservation_time: datetime
    expiration_time: datetime
    status: ReservationStatus = ReservationStatus.PENDING
    notification_status: NotificationStatus = NotificationStatus.PENDING
    source_waitlist_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    # Intake request that produced this hold; replays of that request resolve to it
    request_id: Optional[str] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        user_id: str,
        event_id: str,
        lines: List[TicketLine],
        reservation_time: datetime,
        now: datetime,
        hold_minutes: int,
        source_waitlist_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> 'Reservation':
        if not lines:
            raise InvalidArgumentError('Reservation requires at least one ticket line')
        return cls(
            id=str(uuid_utils.uuid7()),
            user_id=user_id,
            event_id=event_id,
            lines=list(lines),
            reservation_time=reservation_time,
            # The hold window starts when the hold is taken, not when it was requested
            expiration_time=now + timedelta(minutes=hold_minutes),
            status=ReservationStatus.PENDING,
            source_waitlist_id=source_waitlist_id,
            request_id=request_id,
        )

    @property
    def ticket_type_id(self) -> str:
        return self.lines[0].ticket_type_id

    @property
    def quantity(self) -> int:
        return self.lines[0].quantity

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_pending(self) -> bool:
        return self.status == ReservationStatus.PENDING

    def validate_owner(self, user_id: str) -> None:
        if self.user_id != user_id:
            raise PermissionDeniedError('Reservation does not belong to this user')

    def validate_can_complete(self, now: datetime) -> None:
        """
        Raises:
            FailedPreconditionError: not pending, or the hold deadline has passed
        """
        if self.status != ReservationStatus.PENDING:
            raise FailedPreconditionError(f'Reservation is {self.status.value}')
        if now > self.expiration_time:
            raise FailedPreconditionError('Reservation has expired')

    @Logger.io
    def mark_completed(self, *, now: datetime) -> 'Reservation':
        return attrs.evolve(self, status=ReservationStatus.COMPLETED, completed_at=now)

    @Logger.io
    def mark_expired(self, *, now: datetime) -> 'Reservation':
        return attrs.evolve(self, status=ReservationStatus.EXPIRED, expired_at=now)
