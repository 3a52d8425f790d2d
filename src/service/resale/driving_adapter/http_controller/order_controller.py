from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.cancel_order_use_case import CancelOrderUseCase
from src.service.resale.app.command.create_order_use_case import CreateOrderUseCase
from src.service.resale.app.command.create_payment_link_use_case import (
    CreatePaymentLinkUseCase,
)
from src.service.resale.app.dto.order_dto import OrderLineRequest
from src.service.resale.app.query.get_order_use_case import GetOrderUseCase
from src.service.resale.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.resale.driving_adapter.http_controller.schema.order_schema import (
    OrderCreateRequest,
    OrderResponse,
    PaymentLinkResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def create_order(
    request: OrderCreateRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: CreateOrderUseCase = Depends(Provide[Container.create_order_use_case]),
) -> OrderResponse:
    with tracer.start_as_current_span('controller.create_order') as span:
        span.set_attribute('event.id', str(request.event_id))
        span.set_attribute('order.lines', len(request.items))

        order = await use_case.execute(
            buyer_user_id=user_id,
            event_id=request.event_id,
            lines=[
                OrderLineRequest(
                    ticket_wave_id=item.ticket_wave_id, price=item.price, quantity=item.quantity
                )
                for item in request.items
            ],
        )
        span.set_attribute('order.id', str(order.id))
        return OrderResponse.from_entity(order)


@router.get('/{order_id}')
@Logger.io
@inject
async def get_order(
    order_id: UUID,
    user_id: str = Depends(get_current_user_id),
    use_case: GetOrderUseCase = Depends(Provide[Container.get_order_use_case]),
) -> OrderResponse:
    details = await use_case.execute(order_id=order_id, user_id=user_id)
    return OrderResponse.from_details(details)


@router.post('/{order_id}/cancel')
@Logger.io
@inject
async def cancel_order(
    order_id: UUID,
    user_id: str = Depends(get_current_user_id),
    use_case: CancelOrderUseCase = Depends(Provide[Container.cancel_order_use_case]),
) -> OrderResponse:
    order = await use_case.execute(order_id=order_id, buyer_user_id=user_id)
    return OrderResponse.from_entity(order)


@router.post('/{order_id}/payment-link', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def create_payment_link(
    order_id: UUID,
    user_id: str = Depends(get_current_user_id),
    use_case: CreatePaymentLinkUseCase = Depends(
        Provide[Container.create_payment_link_use_case]
    ),
) -> PaymentLinkResponse:
    link = await use_case.execute(order_id=order_id, buyer_user_id=user_id)
    return PaymentLinkResponse.from_dto(link)
