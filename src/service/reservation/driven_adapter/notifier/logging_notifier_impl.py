from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_notifier import INotifier
from src.service.reservation.domain.value_object.notification_message import NotificationMessage


class LoggingNotifierImpl(INotifier):
    """Used when no push gateway is configured: delivery is a log line"""

    async def send(self, *, message: NotificationMessage) -> None:
        Logger.base.info(
            f'🔔 [NOTIFY] user={message.user_id} title="{message.title}" '
            f'body="{message.body}" data={message.data}'
        )
