"""
Reservation Allocator

Picks the oldest matching unsold tickets of a wave and holds them for an order.

Exclusion comes from the database, not from this process:
- candidate rows are locked FOR UPDATE SKIP LOCKED, so concurrent allocations
  do not pick the same rows while both transactions are open
- the partial unique index on unreleased reservations rejects the insert if
  another transaction already holds a ticket; that attempt is retried
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.marketplace_metrics import metrics
from src.service.resale.app.dto.order_dto import Allocation
from src.service.resale.domain.entity.reservation_entity import Reservation
from src.service.resale.domain.resale_errors import (
    InsufficientInventoryError,
    ReservationConflictError,
)
from src.service.resale.domain.value_object.marketplace_config import MarketplaceConfig


class TicketAllocator:
    def __init__(self, *, config: MarketplaceConfig) -> None:
        self.config = config

    @Logger.io
    async def reserve_tickets(
        self,
        *,
        uow: AbstractUnitOfWork,
        ticket_wave_id: UUID,
        price: Decimal,
        quantity: int,
        order_id: UUID,
        reserved_until: datetime,
        now: datetime,
        wave_name: str = '',
    ) -> Allocation:
        """
        Hold ``quantity`` tickets of the wave at exactly ``price`` for the order.

        Runs inside the caller's unit of work; nothing is committed here.

        Raises:
            InsufficientInventoryError: fewer matching tickets than requested, or
                every retry lost its tickets to a concurrent allocation
        """
        for attempt in range(1, self.config.allocation_max_retries + 1):
            tickets = await uow.listing_repo.find_available_tickets_for_update(
                ticket_wave_id=ticket_wave_id, price=price, limit=quantity, now=now
            )
            if len(tickets) < quantity:
                raise InsufficientInventoryError(
                    available=len(tickets), requested=quantity, price=price, wave_name=wave_name
                )

            ticket_ids = [ticket.ticket_id for ticket in tickets]
            # Lapsed holds the sweeper has not reached yet still occupy the unique index
            await uow.reservation_repo.release_lapsed_for_tickets(ticket_ids=ticket_ids, now=now)

            reservations = [
                Reservation.hold_ticket(
                    order_id=order_id, listing_ticket_id=ticket_id, until=reserved_until, now=now
                )
                for ticket_id in ticket_ids
            ]
            try:
                await uow.reservation_repo.create_many(reservations=reservations)
            except ReservationConflictError:
                metrics.allocation_retries.inc()
                Logger.base.warning(
                    f'🎟️ [ALLOCATE] Lost tickets of wave {ticket_wave_id} to a concurrent order '
                    f'(attempt {attempt}/{self.config.allocation_max_retries})'
                )
                continue

            Logger.base.info(
                f'🎟️ [ALLOCATE] Reserved {quantity} ticket(s) of wave {ticket_wave_id} '
                f'at {price} for order {order_id} until {reserved_until.isoformat()}'
            )
            return Allocation(reservations=reservations, tickets=tickets)

        remaining = await uow.listing_repo.find_available_tickets_for_update(
            ticket_wave_id=ticket_wave_id, price=price, limit=quantity, now=now
        )
        raise InsufficientInventoryError(
            available=len(remaining),
            requested=quantity,
            price=price,
            wave_name=wave_name,
        )

    @Logger.io
    async def extend_reservations(
        self, *, uow: AbstractUnitOfWork, order_id: UUID, until: datetime
    ) -> int:
        return await uow.reservation_repo.extend_by_order(order_id=order_id, until=until)
