from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID

import attrs

from src.service.resale.domain.domain_event.notification_event import NotificationEvent
from src.service.resale.domain.entity.order_entity import Order
from src.service.resale.domain.entity.payment_entity import Payment
from src.service.resale.domain.entity.reservation_entity import Reservation
from src.service.resale.domain.value_object.ticket_snapshot import TicketSnapshot


@attrs.frozen
class OrderLineRequest:
    ticket_wave_id: UUID
    price: Decimal
    quantity: int


@attrs.frozen
class Allocation:
    """Reservations written for one (wave, price) group and the tickets they hold"""

    reservations: List[Reservation]
    tickets: List[TicketSnapshot]


@attrs.frozen
class OrderTransition:
    """A committed-on-success order change plus what to tell users once it is committed"""

    order: Order
    notifications: List[NotificationEvent] = attrs.field(factory=list)


@attrs.frozen
class OrderDetails:
    order: Order
    payments: List[Payment]


@attrs.frozen
class PaymentLink:
    payment_id: UUID
    provider_payment_id: str
    redirect_url: str | None
    reservation_expires_at: datetime
