from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import exists, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_order_repo import IOrderRepo
from src.service.resale.domain.entity.order_entity import Order, OrderItem
from src.service.resale.domain.enum.order_status import OrderStatus
from src.service.resale.domain.enum.payment_status import PaymentStatus
from src.service.resale.driven_adapter.model.order_model import OrderItemModel, OrderModel
from src.service.resale.driven_adapter.model.payment_model import PaymentModel


class OrderRepoImpl(IOrderRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_order: OrderModel) -> Order:
        return Order(
            id=db_order.id,
            buyer_user_id=db_order.buyer_user_id,
            event_id=db_order.event_id,
            status=OrderStatus(db_order.status),
            currency=db_order.currency,
            subtotal_amount=db_order.subtotal_amount,
            platform_commission=db_order.platform_commission,
            vat_commission=db_order.vat_commission,
            total_amount=db_order.total_amount,
            reservation_expires_at=db_order.reservation_expires_at,
            created_at=db_order.created_at,
            updated_at=db_order.updated_at,
            confirmed_at=db_order.confirmed_at,
            cancelled_at=db_order.cancelled_at,
            items=[
                OrderItem(
                    id=item.id,
                    ticket_wave_id=item.ticket_wave_id,
                    price_per_ticket=item.price_per_ticket,
                    quantity=item.quantity,
                    subtotal=item.subtotal,
                )
                for item in db_order.items
            ],
        )

    @Logger.io
    async def create(self, *, order: Order) -> Order:
        await self.session.execute(
            insert(OrderModel).values(
                id=order.id,
                buyer_user_id=order.buyer_user_id,
                event_id=order.event_id,
                status=order.status.value,
                currency=order.currency,
                subtotal_amount=order.subtotal_amount,
                platform_commission=order.platform_commission,
                vat_commission=order.vat_commission,
                total_amount=order.total_amount,
                reservation_expires_at=order.reservation_expires_at,
                created_at=order.created_at,
                updated_at=order.updated_at,
            )
        )
        if order.items:
            await self.session.execute(
                insert(OrderItemModel),
                [
                    {
                        'id': item.id,
                        'order_id': order.id,
                        'ticket_wave_id': item.ticket_wave_id,
                        'price_per_ticket': item.price_per_ticket,
                        'quantity': item.quantity,
                        'subtotal': item.subtotal,
                    }
                    for item in order.items
                ],
            )
        return order

    @Logger.io
    async def get_by_id(self, *, order_id: UUID) -> Order | None:
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    @Logger.io
    async def get_by_id_for_update(self, *, order_id: UUID) -> Order | None:
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update(of=OrderModel)
            .execution_options(populate_existing=True)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    @Logger.io
    async def get_pending_by_buyer_and_event(
        self, *, buyer_user_id: str, event_id: UUID
    ) -> Order | None:
        result = await self.session.execute(
            select(OrderModel)
            .where(
                OrderModel.buyer_user_id == buyer_user_id,
                OrderModel.event_id == event_id,
                OrderModel.status == OrderStatus.PENDING.value,
            )
            .order_by(OrderModel.created_at.desc())
            .limit(1)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    @Logger.io
    async def update(self, *, order: Order) -> Order:
        await self.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order.id)
            .values(
                status=order.status.value,
                reservation_expires_at=order.reservation_expires_at,
                updated_at=order.updated_at,
                confirmed_at=order.confirmed_at,
                cancelled_at=order.cancelled_at,
            )
        )
        return order

    @Logger.io
    async def list_lapsed_pending_ids(self, *, now: datetime, limit: int) -> List[UUID]:
        result = await self.session.execute(
            select(OrderModel.id)
            .where(
                OrderModel.status == OrderStatus.PENDING.value,
                OrderModel.reservation_expires_at <= now,
            )
            .order_by(OrderModel.reservation_expires_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    @Logger.io
    async def list_lapsed_pending_ids_with_only_failed_payments(
        self, *, now: datetime, limit: int
    ) -> List[UUID]:
        any_payment = exists().where(PaymentModel.order_id == OrderModel.id)
        non_failed_payment = exists().where(
            PaymentModel.order_id == OrderModel.id,
            PaymentModel.status != PaymentStatus.FAILED.value,
        )
        result = await self.session.execute(
            select(OrderModel.id)
            .where(
                OrderModel.status == OrderStatus.PENDING.value,
                OrderModel.reservation_expires_at <= now,
                any_payment,
                ~non_failed_payment,
            )
            .order_by(OrderModel.reservation_expires_at)
            .limit(limit)
        )
        return list(result.scalars().all())
