"""
Order State Machine

pending -> confirmed | cancelled | expired; every other state is terminal.

Every method runs inside the caller's unit of work and expects the order to be
row-locked by that unit (``get_by_id_for_update``), so two transitions of the
same order are serialised by the database and the loser sees a non-pending order.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import List

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import ConflictError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.marketplace_metrics import metrics
from src.service.resale.app.dto.order_dto import OrderTransition
from src.service.resale.domain.domain_event.notification_event import (
    NotificationEvent,
    OrderConfirmed,
    OrderExpired,
    TicketSoldSeller,
)
from src.service.resale.domain.entity.event_entity import Event
from src.service.resale.domain.entity.order_entity import Order
from src.service.resale.domain.entity.seller_earning_entity import SellerEarning
from src.service.resale.domain.enum.order_status import OrderStatus
from src.service.resale.domain.resale_errors import (
    InvalidStatusTransitionError,
    ReservationLostError,
)
from src.service.resale.domain.value_object.fee_breakdown import calculate_seller_amount
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig


class OrderStateMachine:
    def __init__(self, *, config: MarketplaceConfig) -> None:
        self.config = config

    async def _get_event(self, *, uow: AbstractUnitOfWork, order: Order) -> Event:
        event = await uow.event_query_repo.get_event(event_id=order.event_id)
        if not event:
            raise NotFoundError(f'Event {order.event_id} of order {order.id} not found')
        return event

    @Logger.io
    async def confirm(
        self, *, uow: AbstractUnitOfWork, order: Order, now: datetime
    ) -> OrderTransition:
        """
        Turn the order's reservations into sales.

        Every check happens before the first write, so ``ReservationLostError``
        leaves the unit of work untouched and the caller may still commit other work.

        Raises:
            InvalidStatusTransitionError: order is not pending
            ReservationLostError: a reservation was released or its ticket already sold
        """
        if not order.is_pending:
            raise InvalidStatusTransitionError(
                entity='Order', from_status=order.status, to_status=OrderStatus.CONFIRMED
            )

        holding = await uow.reservation_repo.list_holding_by_order(order_id=order.id)
        if len(holding) != order.ticket_count:
            raise ReservationLostError(
                order_id=order.id, held=len(holding), expected=order.ticket_count
            )

        ticket_ids = [reservation.listing_ticket_id for reservation in holding]
        tickets = await uow.listing_repo.get_ticket_snapshots(ticket_ids=ticket_ids)
        unsold = [ticket for ticket in tickets if ticket.sold_at is None]
        if len(unsold) != order.ticket_count:
            raise ReservationLostError(
                order_id=order.id, held=len(unsold), expected=order.ticket_count
            )

        event = await self._get_event(uow=uow, order=order)
        confirmed = order.confirm(now=now)

        sold_ids = await uow.listing_repo.mark_tickets_sold(ticket_ids=ticket_ids, now=now)
        if len(sold_ids) != len(ticket_ids):
            # Caller must roll back: some tickets were already sold
            raise ConflictError(
                f'Order {order.id}: only {len(sold_ids)} of {len(ticket_ids)} tickets could be sold'
            )
        listing_ids = list(dict.fromkeys(ticket.listing_id for ticket in tickets))
        sold_out = await uow.listing_repo.mark_sold_out_listings(listing_ids=listing_ids, now=now)

        reservation_by_ticket = {r.listing_ticket_id: r for r in holding}
        hold_until = event.end_date + self.config.payout_hold_period
        earnings = [
            SellerEarning.for_sold_ticket(
                seller_user_id=ticket.publisher_user_id,
                order_id=order.id,
                listing_id=ticket.listing_id,
                listing_ticket_id=ticket.ticket_id,
                reservation_id=reservation_by_ticket[ticket.ticket_id].id,
                gross_amount=ticket.price,
                seller_amount=calculate_seller_amount(ticket.price, self.config),
                currency=ticket.currency,
                hold_until=hold_until,
                now=now,
            )
            for ticket in tickets
        ]
        await uow.seller_earning_repo.create_many(earnings=earnings)

        # Superseded by sold_at on the tickets
        await uow.reservation_repo.release_by_order(order_id=order.id, now=now)
        await uow.order_repo.update(order=confirmed)

        Logger.base.info(
            f'✅ [ORDER] Confirmed order {order.id}: {len(sold_ids)} ticket(s) sold, '
            f'{len(sold_out)} listing(s) sold out, {len(earnings)} earning(s) held until {hold_until.isoformat()}'
        )
        metrics.record_order_transition(to_status=OrderStatus.CONFIRMED)

        notifications: List[NotificationEvent] = [
            OrderConfirmed(
                user_id=order.buyer_user_id,
                order_id=order.id,
                event_name=event.name,
                ticket_count=order.ticket_count,
                total_amount=order.total_amount,
                currency=order.currency,
            )
        ]
        per_seller: dict[str, list[SellerEarning]] = defaultdict(list)
        for earning in earnings:
            per_seller[earning.seller_user_id].append(earning)
        notifications.extend(
            TicketSoldSeller(
                user_id=seller_user_id,
                order_id=order.id,
                event_name=event.name,
                ticket_count=len(seller_earnings),
                seller_amount=sum((e.seller_amount for e in seller_earnings), Decimal('0')),
                currency=seller_earnings[0].currency,
            )
            for seller_user_id, seller_earnings in per_seller.items()
        )
        return OrderTransition(order=confirmed, notifications=notifications)

    @Logger.io
    async def expire(
        self, *, uow: AbstractUnitOfWork, order: Order, now: datetime, notify: bool = True
    ) -> OrderTransition | None:
        """Release the order's reservations; None when the order already left pending"""
        if not order.is_pending:
            Logger.base.warning(f'⏰ [ORDER] Order {order.id} is {order.status}, expire skipped')
            return None

        expired = order.expire(now=now)
        released = await uow.reservation_repo.release_by_order(order_id=order.id, now=now)
        await uow.order_repo.update(order=expired)

        Logger.base.info(f'⏰ [ORDER] Expired order {order.id}, released {released} reservation(s)')
        metrics.record_order_transition(to_status=OrderStatus.EXPIRED)

        notifications: List[NotificationEvent] = []
        if notify:
            event = await uow.event_query_repo.get_event(event_id=order.event_id)
            notifications.append(
                OrderExpired(
                    user_id=order.buyer_user_id,
                    order_id=order.id,
                    event_name=event.name if event else '',
                )
            )
        return OrderTransition(order=expired, notifications=notifications)

    @Logger.io
    async def cancel(
        self, *, uow: AbstractUnitOfWork, order: Order, now: datetime
    ) -> OrderTransition | None:
        """Release the order's reservations; None when the order already left pending"""
        if not order.is_pending:
            Logger.base.warning(f'🚫 [ORDER] Order {order.id} is {order.status}, cancel skipped')
            return None

        cancelled = order.cancel(now=now)
        released = await uow.reservation_repo.release_by_order(order_id=order.id, now=now)
        await uow.order_repo.update(order=cancelled)

        Logger.base.info(
            f'🚫 [ORDER] Cancelled order {order.id}, released {released} reservation(s)'
        )
        metrics.record_order_transition(to_status=OrderStatus.CANCELLED)
        return OrderTransition(order=cancelled)
