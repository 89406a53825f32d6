"""
Webhook Notifier

Pushes notification messages to an HTTP push gateway (one POST per message).
Any transport error or non-2xx response is raised to the dispatcher, which
records the delivery as failed.
"""

from typing import Optional

import httpx

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_notifier import INotifier
from src.service.reservation.domain.value_object.notification_message import NotificationMessage


class WebhookNotifierImpl(INotifier):
    def __init__(
        self,
        *,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or settings.NOTIFIER_WEBHOOK_URL
        self.timeout = timeout or settings.NOTIFIER_TIMEOUT
        self._transport = transport

    @Logger.io
    async def send(self, *, message: NotificationMessage) -> None:
        body = {
            'user_id': message.user_id,
            'notification': {'title': message.title, 'body': message.body},
            'data': message.data,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=body)
            response.raise_for_status()
