from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.service.resale.domain.enum.earning_status import PayoutStatus, SellerEarningStatus
from src.service.resale.domain.resale_errors import InvalidStatusTransitionError


_ALLOWED_EARNING_TRANSITIONS: dict[SellerEarningStatus, frozenset[SellerEarningStatus]] = {
    SellerEarningStatus.PENDING: frozenset(
        {
            SellerEarningStatus.AVAILABLE,
            SellerEarningStatus.RETAINED,
            SellerEarningStatus.FAILED_PAYOUT,
        }
    ),
    SellerEarningStatus.AVAILABLE: frozenset(
        {SellerEarningStatus.PAID_OUT, SellerEarningStatus.FAILED_PAYOUT}
    ),
    SellerEarningStatus.RETAINED: frozenset({SellerEarningStatus.FAILED_PAYOUT}),
    SellerEarningStatus.PAID_OUT: frozenset({SellerEarningStatus.FAILED_PAYOUT}),
    SellerEarningStatus.FAILED_PAYOUT: frozenset(),
}


@attrs.define
class SellerEarning:
    id: UUID
    seller_user_id: str
    order_id: UUID
    listing_id: UUID
    listing_ticket_id: UUID
    reservation_id: Optional[UUID]
    gross_amount: Decimal
    seller_amount: Decimal
    currency: str
    hold_until: datetime
    created_at: datetime
    status: SellerEarningStatus = SellerEarningStatus.PENDING
    payout_id: Optional[UUID] = None
    released_at: Optional[datetime] = None
    retained_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def for_sold_ticket(
        cls,
        *,
        seller_user_id: str,
        order_id: UUID,
        listing_id: UUID,
        listing_ticket_id: UUID,
        reservation_id: UUID | None,
        gross_amount: Decimal,
        seller_amount: Decimal,
        currency: str,
        hold_until: datetime,
        now: datetime,
    ) -> 'SellerEarning':
        return cls(
            id=uuid7(),
            seller_user_id=seller_user_id,
            order_id=order_id,
            listing_id=listing_id,
            listing_ticket_id=listing_ticket_id,
            reservation_id=reservation_id,
            gross_amount=gross_amount,
            seller_amount=seller_amount,
            currency=currency,
            hold_until=hold_until,
            created_at=now,
            updated_at=now,
        )

    def _move(self, to_status: SellerEarningStatus) -> None:
        if to_status not in _ALLOWED_EARNING_TRANSITIONS[self.status]:
            raise InvalidStatusTransitionError(
                entity='SellerEarning', from_status=self.status, to_status=to_status
            )

    def is_hold_over(self, *, now: datetime) -> bool:
        return self.status == SellerEarningStatus.PENDING and self.hold_until <= now

    def release(self, *, now: datetime) -> 'SellerEarning':
        self._move(SellerEarningStatus.AVAILABLE)
        return attrs.evolve(
            self, status=SellerEarningStatus.AVAILABLE, released_at=now, updated_at=now
        )

    def retain(self, *, now: datetime) -> 'SellerEarning':
        self._move(SellerEarningStatus.RETAINED)
        return attrs.evolve(
            self, status=SellerEarningStatus.RETAINED, retained_at=now, updated_at=now
        )

    def mark_paid_out(self, *, payout_id: UUID, now: datetime) -> 'SellerEarning':
        self._move(SellerEarningStatus.PAID_OUT)
        return attrs.evolve(
            self, status=SellerEarningStatus.PAID_OUT, payout_id=payout_id, updated_at=now
        )

    def mark_failed_payout(self, *, now: datetime) -> 'SellerEarning':
        self._move(SellerEarningStatus.FAILED_PAYOUT)
        return attrs.evolve(self, status=SellerEarningStatus.FAILED_PAYOUT, updated_at=now)

    def clone_as_available(self, *, now: datetime) -> 'SellerEarning':
        """Fresh payable copy of an earning whose payout failed"""
        return attrs.evolve(
            self,
            id=uuid7(),
            status=SellerEarningStatus.AVAILABLE,
            payout_id=None,
            released_at=now,
            retained_at=None,
            created_at=now,
            updated_at=now,
        )


@attrs.define
class Payout:
    id: UUID
    seller_user_id: str
    amount: Decimal
    currency: str
    requested_at: datetime
    status: PayoutStatus = PayoutStatus.PENDING
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def request(
        cls, *, seller_user_id: str, amount: Decimal, currency: str, now: datetime
    ) -> 'Payout':
        return cls(
            id=uuid7(),
            seller_user_id=seller_user_id,
            amount=amount,
            currency=currency,
            requested_at=now,
            updated_at=now,
        )

    def fail(self, *, reason: str, now: datetime) -> 'Payout':
        if self.status != PayoutStatus.PENDING:
            raise InvalidStatusTransitionError(
                entity='Payout', from_status=self.status, to_status=PayoutStatus.FAILED
            )
        return attrs.evolve(
            self,
            status=PayoutStatus.FAILED,
            failed_at=now,
            failure_reason=reason,
            updated_at=now,
        )
