from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.resale.domain.entity.order_entity import Order


class IOrderRepo(ABC):
    @abstractmethod
    async def create(self, *, order: Order) -> Order:
        """Insert the order and its items"""
        pass

    @abstractmethod
    async def get_by_id(self, *, order_id: UUID) -> Order | None:
        pass

    @abstractmethod
    async def get_by_id_for_update(self, *, order_id: UUID) -> Order | None:
        """Row-locks the order until the transaction ends; every status change goes through this"""
        pass

    @abstractmethod
    async def get_pending_by_buyer_and_event(
        self, *, buyer_user_id: str, event_id: UUID
    ) -> Order | None:
        pass

    @abstractmethod
    async def update(self, *, order: Order) -> Order:
        pass

    @abstractmethod
    async def list_lapsed_pending_ids(self, *, now: datetime, limit: int) -> List[UUID]:
        pass

    @abstractmethod
    async def list_lapsed_pending_ids_with_only_failed_payments(
        self, *, now: datetime, limit: int
    ) -> List[UUID]:
        pass
