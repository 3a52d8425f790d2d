from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_seller_earning_repo import (
    IPayoutRepo,
    ISellerEarningRepo,
)
from src.service.resale.domain.entity.seller_earning_entity import Payout, SellerEarning
from src.service.resale.domain.enum.earning_status import PayoutStatus, SellerEarningStatus
from src.service.resale.driven_adapter.model.seller_earning_model import (
    PayoutModel,
    SellerEarningModel,
)


class SellerEarningRepoImpl(ISellerEarningRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_earning: SellerEarningModel) -> SellerEarning:
        return SellerEarning(
            id=db_earning.id,
            seller_user_id=db_earning.seller_user_id,
            order_id=db_earning.order_id,
            listing_id=db_earning.listing_id,
            listing_ticket_id=db_earning.listing_ticket_id,
            reservation_id=db_earning.reservation_id,
            gross_amount=db_earning.gross_amount,
            seller_amount=db_earning.seller_amount,
            currency=db_earning.currency,
            status=SellerEarningStatus(db_earning.status),
            hold_until=db_earning.hold_until,
            payout_id=db_earning.payout_id,
            released_at=db_earning.released_at,
            retained_at=db_earning.retained_at,
            created_at=db_earning.created_at,
            updated_at=db_earning.updated_at,
        )

    @Logger.io
    async def create_many(self, *, earnings: List[SellerEarning]) -> List[SellerEarning]:
        if not earnings:
            return []
        await self.session.execute(
            insert(SellerEarningModel),
            [
                {
                    'id': e.id,
                    'seller_user_id': e.seller_user_id,
                    'order_id': e.order_id,
                    'listing_id': e.listing_id,
                    'listing_ticket_id': e.listing_ticket_id,
                    'reservation_id': e.reservation_id,
                    'gross_amount': e.gross_amount,
                    'seller_amount': e.seller_amount,
                    'currency': e.currency,
                    'status': e.status.value,
                    'hold_until': e.hold_until,
                    'payout_id': e.payout_id,
                    'released_at': e.released_at,
                    'retained_at': e.retained_at,
                    'created_at': e.created_at,
                    'updated_at': e.updated_at,
                }
                for e in earnings
            ],
        )
        return earnings

    @Logger.io
    async def list_due_pending_for_update(
        self, *, now: datetime, limit: int
    ) -> List[SellerEarning]:
        result = await self.session.execute(
            select(SellerEarningModel)
            .where(
                SellerEarningModel.status == SellerEarningStatus.PENDING.value,
                SellerEarningModel.hold_until <= now,
            )
            .order_by(SellerEarningModel.hold_until)
            .limit(limit)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def get_by_ids_for_update(self, *, earning_ids: List[UUID]) -> List[SellerEarning]:
        if not earning_ids:
            return []
        result = await self.session.execute(
            select(SellerEarningModel)
            .where(SellerEarningModel.id.in_(earning_ids))
            .order_by(SellerEarningModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def list_by_seller(
        self, *, seller_user_id: str, status: SellerEarningStatus | None = None
    ) -> List[SellerEarning]:
        stmt = select(SellerEarningModel).where(
            SellerEarningModel.seller_user_id == seller_user_id
        )
        if status is not None:
            stmt = stmt.where(SellerEarningModel.status == status.value)
        result = await self.session.execute(stmt.order_by(SellerEarningModel.created_at))
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def list_by_payout(self, *, payout_id: UUID) -> List[SellerEarning]:
        result = await self.session.execute(
            select(SellerEarningModel)
            .where(SellerEarningModel.payout_id == payout_id)
            .order_by(SellerEarningModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def list_by_order(self, *, order_id: UUID) -> List[SellerEarning]:
        result = await self.session.execute(
            select(SellerEarningModel).where(SellerEarningModel.order_id == order_id)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def update_many(self, *, earnings: List[SellerEarning]) -> None:
        for earning in earnings:
            await self.session.execute(
                update(SellerEarningModel)
                .where(SellerEarningModel.id == earning.id)
                .values(
                    status=earning.status.value,
                    payout_id=earning.payout_id,
                    released_at=earning.released_at,
                    retained_at=earning.retained_at,
                    updated_at=earning.updated_at,
                )
            )


class PayoutRepoImpl(IPayoutRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_payout: PayoutModel) -> Payout:
        return Payout(
            id=db_payout.id,
            seller_user_id=db_payout.seller_user_id,
            amount=db_payout.amount,
            currency=db_payout.currency,
            status=PayoutStatus(db_payout.status),
            requested_at=db_payout.requested_at,
            failed_at=db_payout.failed_at,
            failure_reason=db_payout.failure_reason,
            updated_at=db_payout.updated_at,
        )

    @Logger.io
    async def create(self, *, payout: Payout) -> Payout:
        await self.session.execute(
            insert(PayoutModel).values(
                id=payout.id,
                seller_user_id=payout.seller_user_id,
                amount=payout.amount,
                currency=payout.currency,
                status=payout.status.value,
                requested_at=payout.requested_at,
                updated_at=payout.updated_at,
            )
        )
        return payout

    @Logger.io
    async def get_by_id_for_update(self, *, payout_id: UUID) -> Payout | None:
        result = await self.session.execute(
            select(PayoutModel)
            .where(PayoutModel.id == payout_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_payout = result.scalar_one_or_none()
        return self._to_entity(db_payout) if db_payout else None

    @Logger.io
    async def update(self, *, payout: Payout) -> Payout:
        await self.session.execute(
            update(PayoutModel)
            .where(PayoutModel.id == payout.id)
            .values(
                status=payout.status.value,
                failed_at=payout.failed_at,
                failure_reason=payout.failure_reason,
                updated_at=payout.updated_at,
            )
        )
        return payout
