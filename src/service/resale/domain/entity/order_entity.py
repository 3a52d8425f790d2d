from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.platform.logging.loguru_io import Logger
from src.service.resale.domain.enum.order_status import OrderStatus
from src.service.resale.domain.resale_errors import InvalidStatusTransitionError
from src.service.resale.domain.value_object.fee_breakdown import FeeBreakdown


@attrs.define
class OrderItem:
    ticket_wave_id: UUID
    price_per_ticket: Decimal
    quantity: int
    subtotal: Decimal
    id: UUID = attrs.field(factory=uuid7)


@attrs.define
class Order:
    id: UUID
    buyer_user_id: str
    event_id: UUID
    currency: str
    subtotal_amount: Decimal
    platform_commission: Decimal
    vat_commission: Decimal
    total_amount: Decimal
    reservation_expires_at: datetime
    created_at: datetime
    status: OrderStatus = OrderStatus.PENDING
    items: List[OrderItem] = attrs.field(factory=list)
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        *,
        buyer_user_id: str,
        event_id: UUID,
        currency: str,
        items: List[OrderItem],
        fees: FeeBreakdown,
        reservation_expires_at: datetime,
        now: datetime,
        order_id: UUID | None = None,
    ) -> 'Order':
        return cls(
            id=order_id or uuid7(),
            buyer_user_id=buyer_user_id,
            event_id=event_id,
            currency=currency,
            subtotal_amount=fees.subtotal,
            platform_commission=fees.platform_commission,
            vat_commission=fees.vat_on_commission,
            total_amount=fees.total_amount,
            reservation_expires_at=reservation_expires_at,
            items=items,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def ticket_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def reservation_lapsed(self, *, now: datetime) -> bool:
        return self.reservation_expires_at <= now

    def _leave_pending(self, to_status: OrderStatus) -> None:
        if self.status != OrderStatus.PENDING:
            raise InvalidStatusTransitionError(
                entity='Order', from_status=self.status, to_status=to_status
            )

    @Logger.io
    def confirm(self, *, now: datetime) -> 'Order':
        self._leave_pending(OrderStatus.CONFIRMED)
        return attrs.evolve(self, status=OrderStatus.CONFIRMED, confirmed_at=now, updated_at=now)

    @Logger.io
    def expire(self, *, now: datetime) -> 'Order':
        self._leave_pending(OrderStatus.EXPIRED)
        return attrs.evolve(self, status=OrderStatus.EXPIRED, cancelled_at=now, updated_at=now)

    @Logger.io
    def cancel(self, *, now: datetime) -> 'Order':
        self._leave_pending(OrderStatus.CANCELLED)
        return attrs.evolve(self, status=OrderStatus.CANCELLED, cancelled_at=now, updated_at=now)

    def extend_reservation(self, *, until: datetime, now: datetime) -> 'Order':
        return attrs.evolve(self, reservation_expires_at=until, updated_at=now)
