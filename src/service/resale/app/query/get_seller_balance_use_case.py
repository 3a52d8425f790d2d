from collections import defaultdict
from decimal import Decimal
from typing import List

import attrs

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.resale.domain.entity.seller_earning_entity import SellerEarning
from src.service.resale.domain.enum.earning_status import SellerEarningStatus
from src.service.resale.domain.value_object.seller_balance import (
    CurrencyBalance,
    ListingEarnings,
    SellerBalance,
)


# failed_payout rows are superseded by their available clones
_BALANCE_FIELDS = {
    SellerEarningStatus.AVAILABLE: 'available',
    SellerEarningStatus.RETAINED: 'retained',
    SellerEarningStatus.PENDING: 'pending',
    SellerEarningStatus.PAID_OUT: 'paid_out',
}


def summarize_balance(*, seller_user_id: str, earnings: List[SellerEarning]) -> SellerBalance:
    balances: dict[str, CurrencyBalance] = {}
    by_listing: dict[tuple, List[SellerEarning]] = defaultdict(list)

    for earning in earnings:
        field = _BALANCE_FIELDS.get(earning.status)
        if field is None:
            continue
        balance = balances.setdefault(earning.currency, CurrencyBalance(currency=earning.currency))
        balances[earning.currency] = attrs.evolve(
            balance, **{field: getattr(balance, field) + earning.seller_amount}
        )
        if earning.status == SellerEarningStatus.AVAILABLE:
            by_listing[(earning.listing_id, earning.currency)].append(earning)

    available_by_listing = [
        ListingEarnings(
            listing_id=listing_id,
            currency=currency,
            ticket_count=len(listing_earnings),
            seller_amount=sum((e.seller_amount for e in listing_earnings), Decimal('0')),
            earning_ids=[e.id for e in listing_earnings],
        )
        for (listing_id, currency), listing_earnings in by_listing.items()
    ]
    return SellerBalance(
        seller_user_id=seller_user_id,
        balances=sorted(balances.values(), key=lambda b: b.currency),
        available_by_listing=available_by_listing,
    )


class GetSellerBalanceUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    async def execute(self, *, seller_user_id: str) -> SellerBalance:
        async with self.uow_factory() as uow:
            earnings = await uow.seller_earning_repo.list_by_seller(seller_user_id=seller_user_id)
        return summarize_balance(seller_user_id=seller_user_id, earnings=earnings)
