from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Mapping
from uuid import UUID

import attrs

from src.service.resale.domain.enum.payment_status import (
    PaymentProviderType,
    ProviderPaymentStatus,
)


@attrs.frozen
class CreatePaymentParams:
    order_id: UUID
    amount: Decimal
    currency: str
    description: str
    country: str | None = None
    notification_url: str | None = None
    success_url: str | None = None
    back_url: str | None = None


@attrs.frozen
class ProviderPayment:
    provider_payment_id: str
    redirect_url: str | None
    status: ProviderPaymentStatus


@attrs.frozen
class ProviderPaymentData:
    """What the provider's status API reports for one payment"""

    status: ProviderPaymentStatus
    amount: Decimal | None = None
    currency: str | None = None
    approved_at: datetime | None = None
    rejected_reason: str | None = None

    def charged_matches(self, *, amount: Decimal, currency: str) -> bool:
        if self.amount is None or self.currency is None:
            return False
        return self.amount == amount and self.currency.upper() == currency.upper()


class IPaymentProvider(ABC):
    """
    One payment provider (hosted checkout + status API + signed webhooks).

    Implementations normalise provider responses into ``ProviderPaymentData``;
    callers never see provider-specific status strings or number formats.
    """

    name: PaymentProviderType

    @abstractmethod
    async def create_payment(self, *, params: CreatePaymentParams) -> ProviderPayment:
        pass

    @abstractmethod
    async def get_status(self, *, provider_payment_id: str) -> ProviderPaymentData:
        pass

    @abstractmethod
    def verify_webhook_signature(self, *, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        pass


class IPaymentProviderFactory(ABC):
    @abstractmethod
    def get(self, provider: PaymentProviderType) -> IPaymentProvider:
        """
        Raises:
            NotFoundError: no adapter registered for ``provider``
        """
        pass

    @property
    @abstractmethod
    def default_provider(self) -> PaymentProviderType:
        pass
