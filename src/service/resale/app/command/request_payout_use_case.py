from datetime import datetime, timezone
from decimal import Decimal
from typing import List
from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError, UnauthorizedError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.resale.domain.entity.seller_earning_entity import Payout
from src.service.resale.domain.enum.earning_status import SellerEarningStatus
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig


class RequestPayoutUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory, config: MarketplaceConfig) -> None:
        self.uow_factory = uow_factory
        self.config = config

    @Logger.io
    async def execute(
        self, *, seller_user_id: str, earning_ids: List[UUID], now: datetime | None = None
    ) -> Payout:
        now = now or datetime.now(timezone.utc)
        earning_ids = list(dict.fromkeys(earning_ids))
        if not earning_ids:
            raise ValidationError('Select at least one earning to pay out')

        async with self.uow_factory() as uow:
            earnings = await uow.seller_earning_repo.get_by_ids_for_update(earning_ids=earning_ids)
            found = {earning.id for earning in earnings}
            missing = [str(earning_id) for earning_id in earning_ids if earning_id not in found]
            if missing:
                raise NotFoundError(f'Earnings not found: {", ".join(missing)}')
            if any(earning.seller_user_id != seller_user_id for earning in earnings):
                raise UnauthorizedError('Earnings belong to another seller')
            if any(earning.status != SellerEarningStatus.AVAILABLE for earning in earnings):
                raise ValidationError('Only available earnings can be paid out')

            currencies = {earning.currency for earning in earnings}
            if len(currencies) != 1:
                raise ValidationError('A payout must be in a single currency')
            currency = currencies.pop()

            amount = sum((earning.seller_amount for earning in earnings), Decimal('0'))
            minimum = self.config.payout_minimum(currency)
            if amount < minimum:
                raise ValidationError(f'Minimum payout is {minimum} {currency}, selected {amount}')

            payout = Payout.request(
                seller_user_id=seller_user_id, amount=amount, currency=currency, now=now
            )
            await uow.payout_repo.create(payout=payout)
            await uow.seller_earning_repo.update_many(
                earnings=[e.mark_paid_out(payout_id=payout.id, now=now) for e in earnings]
            )
            await uow.commit()

        Logger.base.info(
            f'🏦 [PAYOUT] {seller_user_id} requested payout {payout.id}: {amount} {currency} '
            f'({len(earnings)} earning(s))'
        )
        return payout
