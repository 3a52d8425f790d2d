from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_payment_repo import IPaymentEventRepo, IPaymentRepo
from src.service.resale.domain.entity.payment_entity import Payment, PaymentEvent
from src.service.resale.domain.enum.payment_status import (
    PaymentEventType,
    PaymentProviderType,
    PaymentStatus,
)
from src.service.resale.driven_adapter.model.payment_model import PaymentEventModel, PaymentModel


_UNSETTLED = (PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value)


class PaymentRepoImpl(IPaymentRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_payment: PaymentModel) -> Payment:
        return Payment(
            id=db_payment.id,
            order_id=db_payment.order_id,
            provider=PaymentProviderType(db_payment.provider),
            provider_payment_id=db_payment.provider_payment_id,
            status=PaymentStatus(db_payment.status),
            amount=db_payment.amount,
            currency=db_payment.currency,
            redirect_url=db_payment.redirect_url,
            requires_manual_review=db_payment.requires_manual_review,
            created_at=db_payment.created_at,
            updated_at=db_payment.updated_at,
            succeeded_at=db_payment.succeeded_at,
            failed_at=db_payment.failed_at,
        )

    @Logger.io
    async def create(self, *, payment: Payment) -> Payment:
        await self.session.execute(
            insert(PaymentModel).values(
                id=payment.id,
                order_id=payment.order_id,
                provider=payment.provider.value,
                provider_payment_id=payment.provider_payment_id,
                status=payment.status.value,
                amount=payment.amount,
                currency=payment.currency,
                redirect_url=payment.redirect_url,
                requires_manual_review=payment.requires_manual_review,
                created_at=payment.created_at,
                updated_at=payment.updated_at,
            )
        )
        return payment

    @Logger.io
    async def get_by_provider_payment_id(
        self, *, provider: PaymentProviderType, provider_payment_id: str
    ) -> Payment | None:
        result = await self.session.execute(
            select(PaymentModel)
            .where(
                PaymentModel.provider == provider.value,
                PaymentModel.provider_payment_id == provider_payment_id,
            )
            .execution_options(populate_existing=True)
        )
        db_payment = result.scalar_one_or_none()
        return self._to_entity(db_payment) if db_payment else None

    @Logger.io
    async def get_by_id_for_update(self, *, payment_id: UUID) -> Payment | None:
        result = await self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.id == payment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_payment = result.scalar_one_or_none()
        return self._to_entity(db_payment) if db_payment else None

    @Logger.io
    async def list_by_order(self, *, order_id: UUID) -> List[Payment]:
        result = await self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.order_id == order_id)
            .order_by(PaymentModel.created_at)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def list_unsettled_created_before(
        self, *, created_before: datetime, limit: int
    ) -> List[Payment]:
        result = await self.session.execute(
            select(PaymentModel)
            .where(
                PaymentModel.status.in_(_UNSETTLED),
                PaymentModel.created_at <= created_before,
            )
            .order_by(PaymentModel.created_at)
            .limit(limit)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def update(self, *, payment: Payment) -> Payment:
        await self.session.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment.id)
            .values(
                status=payment.status.value,
                requires_manual_review=payment.requires_manual_review,
                updated_at=payment.updated_at,
                succeeded_at=payment.succeeded_at,
                failed_at=payment.failed_at,
            )
        )
        return payment


class PaymentEventRepoImpl(IPaymentEventRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create(self, *, event: PaymentEvent) -> PaymentEvent:
        await self.session.execute(
            insert(PaymentEventModel).values(
                id=event.id,
                payment_id=event.payment_id,
                event_type=event.event_type.value,
                from_status=event.from_status.value if event.from_status else None,
                to_status=event.to_status.value if event.to_status else None,
                event_data=event.event_data,
                created_at=event.created_at,
            )
        )
        return event

    @Logger.io
    async def list_by_payment(self, *, payment_id: UUID) -> List[PaymentEvent]:
        result = await self.session.execute(
            select(PaymentEventModel)
            .where(PaymentEventModel.payment_id == payment_id)
            .order_by(PaymentEventModel.created_at, PaymentEventModel.id)
        )
        return [
            PaymentEvent(
                id=row.id,
                payment_id=row.payment_id,
                event_type=PaymentEventType(row.event_type),
                from_status=PaymentStatus(row.from_status) if row.from_status else None,
                to_status=PaymentStatus(row.to_status) if row.to_status else None,
                event_data=row.event_data,
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]
