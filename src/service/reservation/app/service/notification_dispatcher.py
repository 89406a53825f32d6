"""
Notification Dispatcher

Delivers messages collected by a use case after its transaction committed.
Delivery is best-effort: failures are logged and recorded on the affected
reservation or waitlist entry as notification_status, never raised.
"""

from typing import Callable, Sequence

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics
from src.service.reservation.app.interface.i_notifier import INotifier
from src.service.reservation.domain.enum.reservation_status import NotificationStatus
from src.service.reservation.domain.value_object.notification_message import (
    NotificationMessage,
    NotificationSubject,
)


class NotificationDispatcher:
    def __init__(
        self, *, notifier: INotifier, uow_factory: Callable[[], AbstractUnitOfWork]
    ) -> None:
        self.notifier = notifier
        self.uow_factory = uow_factory

    async def dispatch(self, messages: Sequence[NotificationMessage]) -> None:
        for message in messages:
            notification_status = await self._send(message)
            if message.subject is not None and message.subject_id is not None:
                await self._record_status(
                    message, subject_id=message.subject_id, notification_status=notification_status
                )

    async def _send(self, message: NotificationMessage) -> NotificationStatus:
        try:
            await self.notifier.send(message=message)
        except Exception as e:
            reservation_metrics.record_notification(result='failed')
            Logger.base.error(
                f'📭 [NOTIFY] Failed to deliver "{message.title}" to user {message.user_id}: '
                f'{type(e).__name__}: {e}'
            )
            return NotificationStatus.FAILED

        reservation_metrics.record_notification(result='sent')
        return NotificationStatus.SENT

    async def _record_status(
        self,
        message: NotificationMessage,
        *,
        subject_id: str,
        notification_status: NotificationStatus,
    ) -> None:
        try:
            async with self.uow_factory() as uow:
                if message.subject == NotificationSubject.RESERVATION:
                    await uow.reservation_repo.update_notification_status(
                        reservation_id=subject_id,
                        notification_status=notification_status,
                    )
                else:
                    await uow.waitlist_repo.update_notification_status(
                        waitlist_id=subject_id,
                        notification_status=notification_status,
                    )
                await uow.commit()
        except Exception as e:
            Logger.base.warning(
                f'⚠️ [NOTIFY] Could not record notification_status={notification_status} '
                f'on {message.subject} {subject_id}: {e}'
            )
