from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.service.resale.domain.enum.payment_status import (
    PaymentEventType,
    PaymentProviderType,
    PaymentStatus,
)
from src.service.resale.domain.resale_errors import InvalidStatusTransitionError


@attrs.define
class Payment:
    id: UUID
    order_id: UUID
    provider: PaymentProviderType
    provider_payment_id: str
    amount: Decimal
    currency: str
    created_at: datetime
    status: PaymentStatus = PaymentStatus.PENDING
    redirect_url: Optional[str] = None
    requires_manual_review: bool = False
    updated_at: Optional[datetime] = None
    succeeded_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        *,
        order_id: UUID,
        provider: PaymentProviderType,
        provider_payment_id: str,
        amount: Decimal,
        currency: str,
        status: PaymentStatus,
        redirect_url: str | None,
        now: datetime,
    ) -> 'Payment':
        return cls(
            id=uuid7(),
            order_id=order_id,
            provider=provider,
            provider_payment_id=provider_payment_id,
            amount=amount,
            currency=currency,
            status=status,
            redirect_url=redirect_url,
            created_at=now,
            updated_at=now,
        )

    def can_transition_to(self, status: PaymentStatus) -> bool:
        # Succeeded is final. A failed attempt may still be approved late by the provider.
        # Nothing moves back to pending: a stale poll must not undo progress.
        if self.status == PaymentStatus.SUCCEEDED or status == PaymentStatus.PENDING:
            return False
        if self.status == PaymentStatus.FAILED:
            return status == PaymentStatus.SUCCEEDED
        return True

    def transition_to(self, status: PaymentStatus, *, now: datetime) -> 'Payment':
        if not self.can_transition_to(status):
            raise InvalidStatusTransitionError(
                entity='Payment', from_status=self.status, to_status=status
            )
        changes: dict[str, Any] = {'status': status, 'updated_at': now}
        if status == PaymentStatus.SUCCEEDED:
            changes['succeeded_at'] = now
        elif status == PaymentStatus.FAILED:
            changes['failed_at'] = now
        return attrs.evolve(self, **changes)

    def flag_for_manual_review(self, *, now: datetime) -> 'Payment':
        return attrs.evolve(self, requires_manual_review=True, updated_at=now)


@attrs.define
class PaymentEvent:
    """Append-only audit row for everything that happens to a payment"""

    payment_id: UUID
    event_type: PaymentEventType
    created_at: datetime
    from_status: Optional[PaymentStatus] = None
    to_status: Optional[PaymentStatus] = None
    event_data: dict[str, Any] = attrs.field(factory=dict)
    id: UUID = attrs.field(factory=uuid7)
