from datetime import datetime
from decimal import Decimal
from typing import Any, List
from uuid import UUID

from sqlalchemy import Row, and_, exists, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_listing_repo import IListingRepo
from src.service.resale.domain.entity.listing_entity import Listing, ListingTicket
from src.service.resale.domain.value_object.ticket_snapshot import TicketSnapshot
from src.service.resale.driven_adapter.model.listing_model import (
    ListingModel,
    ListingTicketModel,
)
from src.service.resale.driven_adapter.model.reservation_model import (
    OrderTicketReservationModel,
)


_SNAPSHOT_COLUMNS = (
    ListingTicketModel.id,
    ListingTicketModel.listing_id,
    ListingModel.publisher_user_id,
    ListingModel.ticket_wave_id,
    ListingTicketModel.price,
    ListingModel.currency,
    ListingTicketModel.created_at,
    ListingTicketModel.sold_at,
)


class ListingRepoImpl(IListingRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_listing: ListingModel) -> Listing:
        return Listing(
            id=db_listing.id,
            publisher_user_id=db_listing.publisher_user_id,
            event_id=db_listing.event_id,
            ticket_wave_id=db_listing.ticket_wave_id,
            currency=db_listing.currency,
            created_at=db_listing.created_at,
            sold_at=db_listing.sold_at,
            deleted_at=db_listing.deleted_at,
            tickets=[
                ListingTicket(
                    id=t.id,
                    listing_id=t.listing_id,
                    ticket_number=t.ticket_number,
                    price=t.price,
                    created_at=t.created_at,
                    sold_at=t.sold_at,
                    cancelled_at=t.cancelled_at,
                    deleted_at=t.deleted_at,
                )
                for t in db_listing.tickets
            ],
        )

    @staticmethod
    def _to_snapshot(row: Row[Any]) -> TicketSnapshot:
        return TicketSnapshot(
            ticket_id=row.id,
            listing_id=row.listing_id,
            publisher_user_id=row.publisher_user_id,
            ticket_wave_id=row.ticket_wave_id,
            price=row.price,
            currency=row.currency,
            created_at=row.created_at,
            sold_at=row.sold_at,
        )

    @Logger.io
    async def create(self, *, listing: Listing) -> Listing:
        await self.session.execute(
            insert(ListingModel).values(
                id=listing.id,
                publisher_user_id=listing.publisher_user_id,
                event_id=listing.event_id,
                ticket_wave_id=listing.ticket_wave_id,
                currency=listing.currency,
                created_at=listing.created_at,
            )
        )
        await self.session.execute(
            insert(ListingTicketModel),
            [
                {
                    'id': ticket.id,
                    'listing_id': ticket.listing_id,
                    'ticket_number': ticket.ticket_number,
                    'price': ticket.price,
                    'created_at': ticket.created_at,
                }
                for ticket in listing.tickets
            ],
        )
        return listing

    @Logger.io
    async def get_by_id(self, *, listing_id: UUID) -> Listing | None:
        result = await self.session.execute(
            select(ListingModel)
            .where(ListingModel.id == listing_id)
            .execution_options(populate_existing=True)
        )
        db_listing = result.scalar_one_or_none()
        if not db_listing:
            return None
        return self._to_entity(db_listing)

    @Logger.io
    async def cancel(self, *, listing: Listing) -> Listing:
        await self.session.execute(
            update(ListingModel)
            .where(ListingModel.id == listing.id)
            .values(deleted_at=listing.deleted_at)
        )
        await self.session.execute(
            update(ListingTicketModel)
            .where(
                ListingTicketModel.listing_id == listing.id,
                ListingTicketModel.sold_at.is_(None),
                ListingTicketModel.cancelled_at.is_(None),
            )
            .values(cancelled_at=listing.deleted_at)
        )
        return listing

    @Logger.io
    async def find_available_tickets_for_update(
        self, *, ticket_wave_id: UUID, price: Decimal, limit: int, now: datetime
    ) -> List[TicketSnapshot]:
        active_reservation = exists().where(
            OrderTicketReservationModel.listing_ticket_id == ListingTicketModel.id,
            OrderTicketReservationModel.deleted_at.is_(None),
            OrderTicketReservationModel.reserved_until > now,
        )
        stmt = (
            select(*_SNAPSHOT_COLUMNS)
            .join(ListingModel, ListingModel.id == ListingTicketModel.listing_id)
            .where(
                ListingModel.ticket_wave_id == ticket_wave_id,
                ListingModel.deleted_at.is_(None),
                ListingTicketModel.price == price,
                ListingTicketModel.sold_at.is_(None),
                ListingTicketModel.cancelled_at.is_(None),
                ListingTicketModel.deleted_at.is_(None),
                ~active_reservation,
            )
            .order_by(ListingTicketModel.created_at, ListingTicketModel.ticket_number)
            .limit(limit)
            # Tickets locked by a concurrent allocation are skipped rather than waited on
            .with_for_update(of=ListingTicketModel, skip_locked=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_snapshot(row) for row in result.all()]

    @Logger.io
    async def get_ticket_snapshots(self, *, ticket_ids: List[UUID]) -> List[TicketSnapshot]:
        if not ticket_ids:
            return []
        result = await self.session.execute(
            select(*_SNAPSHOT_COLUMNS)
            .join(ListingModel, ListingModel.id == ListingTicketModel.listing_id)
            .where(ListingTicketModel.id.in_(ticket_ids))
            .order_by(ListingTicketModel.created_at, ListingTicketModel.ticket_number)
        )
        return [self._to_snapshot(row) for row in result.all()]

    @Logger.io
    async def mark_tickets_sold(self, *, ticket_ids: List[UUID], now: datetime) -> List[UUID]:
        if not ticket_ids:
            return []
        result = await self.session.execute(
            update(ListingTicketModel)
            .where(
                ListingTicketModel.id.in_(ticket_ids),
                ListingTicketModel.sold_at.is_(None),
                ListingTicketModel.cancelled_at.is_(None),
                ListingTicketModel.deleted_at.is_(None),
            )
            .values(sold_at=now)
            .returning(ListingTicketModel.id)
        )
        return list(result.scalars().all())

    @Logger.io
    async def mark_sold_out_listings(self, *, listing_ids: List[UUID], now: datetime) -> List[UUID]:
        if not listing_ids:
            return []
        unsold_ticket = exists().where(
            and_(
                ListingTicketModel.listing_id == ListingModel.id,
                ListingTicketModel.sold_at.is_(None),
            )
        )
        result = await self.session.execute(
            update(ListingModel)
            .where(
                ListingModel.id.in_(listing_ids),
                ListingModel.sold_at.is_(None),
                ~unsold_ticket,
            )
            .values(sold_at=now)
            .returning(ListingModel.id)
        )
        return list(result.scalars().all())
