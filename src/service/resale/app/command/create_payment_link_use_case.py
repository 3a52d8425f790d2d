from datetime import datetime, timezone
from uuid import UUID

from opentelemetry import trace

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import DomainError, NotFoundError, UnauthorizedError
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.dto.order_dto import PaymentLink
from src.service.resale.app.interface.i_payment_provider import (
    CreatePaymentParams,
    IPaymentProviderFactory,
)
from src.service.resale.domain.entity.order_entity import Order
from src.service.resale.domain.entity.payment_entity import Payment, PaymentEvent
from src.service.resale.domain.enum.payment_status import PaymentEventType, PaymentStatus
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig


class CreatePaymentLinkUseCase:
    """
    Open a hosted checkout for a pending order.

    The provider call happens between two short transactions so no row lock is
    held across the network. Every new link pushes the reservation out to at
    least ``payment_link_reservation_window`` from now so the buyer has time to pay.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        provider_factory: IPaymentProviderFactory,
        config: MarketplaceConfig,
        notification_url: str | None = None,
        success_url: str | None = None,
        back_url: str | None = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.provider_factory = provider_factory
        self.config = config
        self.notification_url = notification_url
        self.success_url = success_url
        self.back_url = back_url
        self.tracer = trace.get_tracer(__name__)

    @staticmethod
    def _check_payable(*, order: Order | None, buyer_user_id: str, now: datetime) -> Order:
        if not order:
            raise NotFoundError('Order not found')
        if order.buyer_user_id != buyer_user_id:
            raise UnauthorizedError('Only the buyer can pay this order')
        if not order.is_pending:
            raise DomainError(f'Order is {order.status}, it can no longer be paid')
        if order.reservation_lapsed(now=now):
            raise DomainError('The reservation of this order has expired')
        return order

    @Logger.io
    async def execute(
        self, *, order_id: UUID, buyer_user_id: str, now: datetime | None = None
    ) -> PaymentLink:
        with self.tracer.start_as_current_span(
            'use_case.create_payment_link', attributes={'order.id': str(order_id)}
        ):
            now = now or datetime.now(timezone.utc)
            async with self.uow_factory() as uow:
                order = self._check_payable(
                    order=await uow.order_repo.get_by_id(order_id=order_id),
                    buyer_user_id=buyer_user_id,
                    now=now,
                )

            provider = self.provider_factory.get(self.provider_factory.default_provider)
            provider_payment = await provider.create_payment(
                params=CreatePaymentParams(
                    order_id=order.id,
                    amount=order.total_amount,
                    currency=order.currency,
                    description=f'Order {order.id}',
                    notification_url=self.notification_url,
                    success_url=self.success_url,
                    back_url=self.back_url,
                )
            )

            async with self.uow_factory() as uow:
                locked = await uow.order_repo.get_by_id_for_update(order_id=order_id)
                if not locked:
                    raise NotFoundError('Order not found')

                payment = Payment.create(
                    order_id=locked.id,
                    provider=provider.name,
                    provider_payment_id=provider_payment.provider_payment_id,
                    amount=locked.total_amount,
                    currency=locked.currency,
                    status=PaymentStatus.from_provider(provider_payment.status),
                    redirect_url=provider_payment.redirect_url,
                    now=now,
                )
                await uow.payment_repo.create(payment=payment)
                await uow.payment_event_repo.create(
                    event=PaymentEvent(
                        payment_id=payment.id,
                        event_type=PaymentEventType.PAYMENT_CREATED,
                        to_status=payment.status,
                        event_data={'provider_status': str(provider_payment.status)},
                        created_at=now,
                    )
                )

                if not locked.is_pending:
                    # Keep the payment: a late approval must still be caught by reconciliation
                    await uow.commit()
                    Logger.base.warning(
                        f'💳 [PAYMENT] Order {order_id} became {locked.status} while creating '
                        f'payment {payment.id}'
                    )
                    raise DomainError(f'Order is {locked.status}, it can no longer be paid')

                until = max(
                    locked.reservation_expires_at,
                    now + self.config.payment_link_reservation_window,
                )
                if until != locked.reservation_expires_at:
                    locked = locked.extend_reservation(until=until, now=now)
                    await uow.order_repo.update(order=locked)
                    await uow.reservation_repo.extend_by_order(order_id=locked.id, until=until)
                await uow.commit()

            Logger.base.info(
                f'💳 [PAYMENT] Created {provider.name} payment {payment.provider_payment_id} '
                f'for order {order_id}, reserved until {locked.reservation_expires_at.isoformat()}'
            )
            return PaymentLink(
                payment_id=payment.id,
                provider_payment_id=payment.provider_payment_id,
                redirect_url=payment.redirect_url,
                reservation_expires_at=locked.reservation_expires_at,
            )
