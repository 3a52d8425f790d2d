from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.resale.domain.entity.seller_earning_entity import Payout
from src.service.resale.domain.value_object.seller_balance import SellerBalance


class CurrencyBalanceResponse(BaseModel):
    currency: str
    available: Decimal
    retained: Decimal
    pending: Decimal
    paid_out: Decimal
    total: Decimal


class ListingEarningsResponse(BaseModel):
    listing_id: UUID
    currency: str
    ticket_count: int
    seller_amount: Decimal
    earning_ids: List[UUID]


class SellerBalanceResponse(BaseModel):
    seller_user_id: str
    balances: List[CurrencyBalanceResponse]
    available_by_listing: List[ListingEarningsResponse]

    @classmethod
    def from_value(cls, balance: SellerBalance) -> 'SellerBalanceResponse':
        return cls(
            seller_user_id=balance.seller_user_id,
            balances=[
                CurrencyBalanceResponse(
                    currency=b.currency,
                    available=b.available,
                    retained=b.retained,
                    pending=b.pending,
                    paid_out=b.paid_out,
                    total=b.total,
                )
                for b in balance.balances
            ],
            available_by_listing=[
                ListingEarningsResponse(
                    listing_id=group.listing_id,
                    currency=group.currency,
                    ticket_count=group.ticket_count,
                    seller_amount=group.seller_amount,
                    earning_ids=group.earning_ids,
                )
                for group in balance.available_by_listing
            ],
        )


class PayoutCreateRequest(BaseModel):
    earning_ids: List[UUID] = Field(min_length=1)


class PayoutFailRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class PayoutResponse(BaseModel):
    id: UUID
    seller_user_id: str
    amount: Decimal
    currency: str
    status: str
    requested_at: datetime
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None

    @classmethod
    def from_entity(cls, payout: Payout) -> 'PayoutResponse':
        return cls(
            id=payout.id,
            seller_user_id=payout.seller_user_id,
            amount=payout.amount,
            currency=payout.currency,
            status=payout.status,
            requested_at=payout.requested_at,
            failed_at=payout.failed_at,
            failure_reason=payout.failure_reason,
        )
