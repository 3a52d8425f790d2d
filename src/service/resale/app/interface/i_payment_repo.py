from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.resale.domain.entity.payment_entity import Payment, PaymentEvent
from src.service.resale.domain.enum.payment_status import PaymentProviderType


class IPaymentRepo(ABC):
    @abstractmethod
    async def create(self, *, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_provider_payment_id(
        self, *, provider: PaymentProviderType, provider_payment_id: str
    ) -> Payment | None:
        pass

    @abstractmethod
    async def get_by_id_for_update(self, *, payment_id: UUID) -> Payment | None:
        pass

    @abstractmethod
    async def list_by_order(self, *, order_id: UUID) -> List[Payment]:
        pass

    @abstractmethod
    async def list_unsettled_created_before(
        self, *, created_before: datetime, limit: int
    ) -> List[Payment]:
        """Pending/processing payments, oldest first"""
        pass

    @abstractmethod
    async def update(self, *, payment: Payment) -> Payment:
        pass


class IPaymentEventRepo(ABC):
    """Append-only payment audit log"""

    @abstractmethod
    async def create(self, *, event: PaymentEvent) -> PaymentEvent:
        pass

    @abstractmethod
    async def list_by_payment(self, *, payment_id: UUID) -> List[PaymentEvent]:
        pass
