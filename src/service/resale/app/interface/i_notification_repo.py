from abc import ABC, abstractmethod
from typing import List

from src.service.resale.domain.entity.notification_entity import Notification


class INotificationRepo(ABC):
    """Outbox of notifications waiting for delivery"""

    @abstractmethod
    async def create_many(self, *, notifications: List[Notification]) -> None:
        pass

    @abstractmethod
    async def list_pending_for_update(self, *, limit: int) -> List[Notification]:
        pass

    @abstractmethod
    async def update(self, *, notification: Notification) -> None:
        pass
