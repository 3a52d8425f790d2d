from decimal import Decimal
from typing import List
from uuid import UUID

import attrs


@attrs.frozen
class CurrencyBalance:
    currency: str
    available: Decimal = Decimal('0')
    retained: Decimal = Decimal('0')
    pending: Decimal = Decimal('0')
    paid_out: Decimal = Decimal('0')

    @property
    def total(self) -> Decimal:
        return self.available + self.retained + self.pending + self.paid_out


@attrs.frozen
class ListingEarnings:
    listing_id: UUID
    currency: str
    ticket_count: int
    seller_amount: Decimal
    earning_ids: List[UUID]


@attrs.frozen
class SellerBalance:
    seller_user_id: str
    balances: List[CurrencyBalance]
    available_by_listing: List[ListingEarnings]
