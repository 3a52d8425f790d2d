from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.service.resale.app.dto.order_dto import OrderDetails, PaymentLink
from src.service.resale.domain.entity.order_entity import Order
from src.service.resale.domain.entity.payment_entity import Payment


class OrderLineSchema(BaseModel):
    ticket_wave_id: UUID
    price: Decimal = Field(gt=0)
    quantity: int


class OrderCreateRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'event_id': '01966c3a-0000-7000-8000-000000000001',
                'items': [
                    {
                        'ticket_wave_id': '01966c3a-0000-7000-8000-000000000002',
                        'price': '800.00',
                        'quantity': 3,
                    }
                ],
            }
        }
    )

    event_id: UUID
    items: List[OrderLineSchema] = Field(min_length=1)


class OrderItemResponse(BaseModel):
    id: UUID
    ticket_wave_id: UUID
    price_per_ticket: Decimal
    quantity: int
    subtotal: Decimal


class PaymentResponse(BaseModel):
    id: UUID
    provider: str
    provider_payment_id: str
    status: str
    amount: Decimal
    currency: str
    redirect_url: Optional[str] = None
    requires_manual_review: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> 'PaymentResponse':
        return cls(
            id=payment.id,
            provider=payment.provider,
            provider_payment_id=payment.provider_payment_id,
            status=payment.status,
            amount=payment.amount,
            currency=payment.currency,
            redirect_url=payment.redirect_url,
            requires_manual_review=payment.requires_manual_review,
            created_at=payment.created_at,
        )


class OrderResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'id': '01966c3a-0000-7000-8000-0000000000aa',
                'buyer_user_id': 'buyer-1',
                'event_id': '01966c3a-0000-7000-8000-000000000001',
                'status': 'pending',
                'currency': 'UYU',
                'subtotal_amount': '2400.00',
                'platform_commission': '144.00',
                'vat_commission': '31.68',
                'total_amount': '2575.68',
                'reservation_expires_at': '2025-01-10T10:40:00Z',
                'created_at': '2025-01-10T10:30:00Z',
                'items': [],
                'payments': [],
            }
        }
    )

    id: UUID
    buyer_user_id: str
    event_id: UUID
    status: str
    currency: str
    subtotal_amount: Decimal
    platform_commission: Decimal
    vat_commission: Decimal
    total_amount: Decimal
    reservation_expires_at: datetime
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemResponse]
    payments: List[PaymentResponse] = []

    @classmethod
    def from_entity(cls, order: Order, payments: List[Payment] | None = None) -> 'OrderResponse':
        return cls(
            id=order.id,
            buyer_user_id=order.buyer_user_id,
            event_id=order.event_id,
            status=order.status,
            currency=order.currency,
            subtotal_amount=order.subtotal_amount,
            platform_commission=order.platform_commission,
            vat_commission=order.vat_commission,
            total_amount=order.total_amount,
            reservation_expires_at=order.reservation_expires_at,
            created_at=order.created_at,
            confirmed_at=order.confirmed_at,
            cancelled_at=order.cancelled_at,
            items=[
                OrderItemResponse(
                    id=item.id,
                    ticket_wave_id=item.ticket_wave_id,
                    price_per_ticket=item.price_per_ticket,
                    quantity=item.quantity,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            payments=[PaymentResponse.from_entity(p) for p in payments or []],
        )

    @classmethod
    def from_details(cls, details: OrderDetails) -> 'OrderResponse':
        return cls.from_entity(details.order, details.payments)


class PaymentLinkResponse(BaseModel):
    payment_id: UUID
    provider_payment_id: str
    redirect_url: Optional[str] = None
    reservation_expires_at: datetime

    @classmethod
    def from_dto(cls, link: PaymentLink) -> 'PaymentLinkResponse':
        return cls(
            payment_id=link.payment_id,
            provider_payment_id=link.provider_payment_id,
            redirect_url=link.redirect_url,
            reservation_expires_at=link.reservation_expires_at,
        )
