from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from opentelemetry import trace
from uuid_utils.compat import uuid7

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError, NotFoundError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.marketplace_metrics import metrics
from src.service.resale.app.command.ticket_allocator import TicketAllocator
from src.service.resale.app.dto.order_dto import OrderLineRequest
from src.service.resale.domain.entity.event_entity import TicketWave
from src.service.resale.domain.entity.order_entity import Order, OrderItem
from src.service.resale.domain.resale_errors import PendingOrderExistsError
from src.service.resale.domain.value_object.fee_breakdown import calculate_order_fees, to_money
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig


def group_order_lines(lines: List[OrderLineRequest]) -> dict[tuple, int]:
    """Merge lines sharing (wave, price); lines with quantity <= 0 are dropped"""
    groups: dict[tuple, int] = {}
    for line in lines:
        if line.quantity <= 0:
            continue
        key = (line.ticket_wave_id, to_money(line.price))
        groups[key] = groups.get(key, 0) + line.quantity
    return groups


class CreateOrderUseCase:
    """
    Create a pending order holding the requested tickets.

    Flow (one transaction, all or nothing):
    1. Guard: no other pending order of this buyer for the event
    2. Validate event (exists, not ended) and waves (exist, belong to event)
    3. Allocate every (wave, price) group; any shortfall aborts the whole order
    4. Reject self-purchase and mixed currencies on the allocated tickets
    5. Compute fees and persist order + items (+ reservations written by the allocator)
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        allocator: TicketAllocator,
        config: MarketplaceConfig,
    ) -> None:
        self.uow_factory = uow_factory
        self.allocator = allocator
        self.config = config
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self,
        *,
        buyer_user_id: str,
        event_id,
        lines: List[OrderLineRequest],
        now: datetime | None = None,
    ) -> Order:
        with self.tracer.start_as_current_span(
            'use_case.create_order',
            attributes={'buyer.id': buyer_user_id, 'event.id': str(event_id)},
        ):
            try:
                order = await self._create(
                    buyer_user_id=buyer_user_id,
                    event_id=event_id,
                    lines=lines,
                    now=now or datetime.now(timezone.utc),
                )
            except CustomBaseError as e:
                metrics.order_creation_failures.labels(reason=type(e).__name__).inc()
                raise

            metrics.orders_created.labels(currency=order.currency).inc()
            return order

    async def _create(
        self, *, buyer_user_id: str, event_id, lines: List[OrderLineRequest], now: datetime
    ) -> Order:
        groups = group_order_lines(lines)
        total_quantity = sum(groups.values())
        if total_quantity < 1 or total_quantity > self.config.max_tickets_per_order:
            raise ValidationError(
                f'An order must contain between 1 and {self.config.max_tickets_per_order} tickets'
            )

        async with self.uow_factory() as uow:
            existing = await uow.order_repo.get_pending_by_buyer_and_event(
                buyer_user_id=buyer_user_id, event_id=event_id
            )
            if existing:
                raise PendingOrderExistsError(order_id=existing.id)

            event = await uow.event_query_repo.get_event(event_id=event_id)
            if not event:
                raise NotFoundError('Event not found')
            if event.is_finished(now=now):
                raise ValidationError('This event has already ended')

            waves: dict = {}
            for ticket_wave_id, _ in groups:
                if ticket_wave_id in waves:
                    continue
                wave = await uow.event_query_repo.get_ticket_wave(ticket_wave_id=ticket_wave_id)
                if not wave:
                    raise NotFoundError(f'Ticket wave {ticket_wave_id} not found')
                if not wave.belongs_to(event_id=event.id):
                    raise ValidationError(f'Ticket wave {wave.name} does not belong to this event')
                waves[ticket_wave_id] = wave

            order_id = uuid7()
            reserved_until = now + self.config.order_reservation_window
            items: List[OrderItem] = []
            currencies: set[str] = set()
            for (ticket_wave_id, price), quantity in groups.items():
                wave: TicketWave = waves[ticket_wave_id]
                allocation = await self.allocator.reserve_tickets(
                    uow=uow,
                    ticket_wave_id=ticket_wave_id,
                    price=price,
                    quantity=quantity,
                    order_id=order_id,
                    reserved_until=reserved_until,
                    now=now,
                    wave_name=wave.name,
                )
                if any(t.publisher_user_id == buyer_user_id for t in allocation.tickets):
                    raise ValidationError('You cannot buy tickets you listed yourself')
                currencies.update(t.currency for t in allocation.tickets)
                items.append(
                    OrderItem(
                        ticket_wave_id=ticket_wave_id,
                        price_per_ticket=price,
                        quantity=quantity,
                        subtotal=to_money(price * quantity),
                    )
                )

            if len(currencies) != 1:
                raise ValidationError('All tickets of an order must share the same currency')

            fees = calculate_order_fees(
                sum((item.subtotal for item in items), Decimal('0')), self.config
            )
            order = Order.create(
                order_id=order_id,
                buyer_user_id=buyer_user_id,
                event_id=event.id,
                currency=currencies.pop(),
                items=items,
                fees=fees,
                reservation_expires_at=reserved_until,
                now=now,
            )
            await uow.order_repo.create(order=order)
            await uow.commit()

        Logger.base.info(
            f'🛒 [ORDER] Created order {order.id} for buyer {buyer_user_id}: '
            f'{total_quantity} ticket(s), total {order.total_amount} {order.currency}'
        )
        return order
