from abc import ABC, abstractmethod
from typing import Sequence

from src.service.resale.domain.domain_event.notification_event import (
    NotificationEvent,
    RenderedNotification,
)


class INotificationPublisher(ABC):
    """
    Fire-and-forget sink for notification events.

    Called after the producing transaction committed; must never raise into
    the caller, a lost notification cannot undo a committed state change.
    """

    @abstractmethod
    async def publish(self, *, events: Sequence[NotificationEvent]) -> None:
        pass


class INotificationChannel(ABC):
    """Delivery channel (email, push...) used by the pending-notification dispatcher"""

    @abstractmethod
    async def send(self, *, user_id: str, notification: RenderedNotification) -> None:
        pass
