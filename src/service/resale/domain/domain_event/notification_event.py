"""
Notification events produced by the order, payment and payout flows.

Each variant carries its own typed payload; ``NotificationEvent`` is the closed
union of them and ``render_notification`` must handle every variant.
"""

from decimal import Decimal
from typing import Any, ClassVar, assert_never
from uuid import UUID

import attrs

from src.service.resale.domain.enum.notification_type import NotificationType


@attrs.frozen
class OrderConfirmed:
    type: ClassVar[NotificationType] = NotificationType.ORDER_CONFIRMED
    user_id: str
    order_id: UUID
    event_name: str
    ticket_count: int
    total_amount: Decimal
    currency: str


@attrs.frozen
class OrderExpired:
    type: ClassVar[NotificationType] = NotificationType.ORDER_EXPIRED
    user_id: str
    order_id: UUID
    event_name: str


@attrs.frozen
class PaymentSucceeded:
    type: ClassVar[NotificationType] = NotificationType.PAYMENT_SUCCEEDED
    user_id: str
    order_id: UUID
    payment_id: UUID
    amount: Decimal
    currency: str


@attrs.frozen
class PaymentFailed:
    type: ClassVar[NotificationType] = NotificationType.PAYMENT_FAILED
    user_id: str
    order_id: UUID
    payment_id: UUID


@attrs.frozen
class TicketSoldSeller:
    type: ClassVar[NotificationType] = NotificationType.TICKET_SOLD_SELLER
    user_id: str
    order_id: UUID
    event_name: str
    ticket_count: int
    seller_amount: Decimal
    currency: str


@attrs.frozen
class PayoutFailed:
    type: ClassVar[NotificationType] = NotificationType.PAYOUT_FAILED
    user_id: str
    payout_id: UUID
    amount: Decimal
    currency: str
    failure_reason: str


NotificationEvent = (
    OrderConfirmed | OrderExpired | PaymentSucceeded | PaymentFailed | TicketSoldSeller | PayoutFailed
)

_EVENT_CLASSES: dict[NotificationType, type[NotificationEvent]] = {
    cls.type: cls
    for cls in (
        OrderConfirmed,
        OrderExpired,
        PaymentSucceeded,
        PaymentFailed,
        TicketSoldSeller,
        PayoutFailed,
    )
}


@attrs.frozen
class RenderedNotification:
    title: str
    body: str


def render_notification(event: NotificationEvent) -> RenderedNotification:
    match event:
        case OrderConfirmed():
            return RenderedNotification(
                title='Purchase confirmed',
                body=(
                    f'Your order for {event.ticket_count} ticket(s) to {event.event_name} '
                    f'is confirmed. Total paid: {event.total_amount} {event.currency}.'
                ),
            )
        case OrderExpired():
            return RenderedNotification(
                title='Order expired',
                body=(
                    f'Your reservation for {event.event_name} expired before payment '
                    'was completed. The tickets have been released.'
                ),
            )
        case PaymentSucceeded():
            return RenderedNotification(
                title='Payment received',
                body=f'We received your payment of {event.amount} {event.currency}.',
            )
        case PaymentFailed():
            return RenderedNotification(
                title='Payment failed',
                body=(
                    'Your payment could not be processed. You can retry while your '
                    'reservation is still active.'
                ),
            )
        case TicketSoldSeller():
            return RenderedNotification(
                title='Tickets sold',
                body=(
                    f'You sold {event.ticket_count} ticket(s) for {event.event_name}. '
                    f'You will receive {event.seller_amount} {event.currency} once the '
                    'hold period ends.'
                ),
            )
        case PayoutFailed():
            return RenderedNotification(
                title='Payout failed',
                body=(
                    f'Your payout of {event.amount} {event.currency} failed: '
                    f'{event.failure_reason}. The earnings are available again.'
                ),
            )
        case _:
            assert_never(event)


def to_payload(event: NotificationEvent) -> dict[str, Any]:
    """JSON-ready payload stored with the pending notification"""
    return {
        key: str(value) if isinstance(value, (UUID, Decimal)) else value
        for key, value in attrs.asdict(event).items()
    }


def from_payload(notification_type: NotificationType, payload: dict[str, Any]) -> NotificationEvent:
    event_cls = _EVENT_CLASSES[notification_type]
    converted: dict[str, Any] = {}
    for field in attrs.fields(event_cls):
        value = payload[field.name]
        if field.type is UUID:
            value = UUID(value)
        elif field.type is Decimal:
            value = Decimal(value)
        converted[field.name] = value
    return event_cls(**converted)
