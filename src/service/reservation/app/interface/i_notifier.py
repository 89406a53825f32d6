from abc import ABC, abstractmethod

from src.service.reservation.domain.value_object.notification_message import NotificationMessage


class INotifier(ABC):
    """Best-effort delivery sink; implementations raise on failure and callers swallow it"""

    @abstractmethod
    async def send(self, *, message: NotificationMessage) -> None:
        pass
