from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import exists, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.resale.app.interface.i_reservation_repo import IReservationRepo
from src.service.resale.domain.entity.reservation_entity import (
    ActiveHold,
    ReleasedHold,
    Reservation,
)
from src.service.resale.domain.resale_errors import ReservationConflictError
from src.service.resale.driven_adapter.model.listing_model import ListingTicketModel
from src.service.resale.driven_adapter.model.reservation_model import (
    ACTIVE_RESERVATION_INDEX,
    OrderTicketReservationModel,
)


class ReservationRepoImpl(IReservationRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(db_reservation: OrderTicketReservationModel) -> Reservation:
        hold = (
            ActiveHold(until=db_reservation.reserved_until)
            if db_reservation.deleted_at is None
            else ReleasedHold(at=db_reservation.deleted_at)
        )
        return Reservation(
            id=db_reservation.id,
            order_id=db_reservation.order_id,
            listing_ticket_id=db_reservation.listing_ticket_id,
            hold=hold,
            created_at=db_reservation.created_at,
        )

    @staticmethod
    def _to_row(reservation: Reservation) -> dict:
        match reservation.hold:
            case ActiveHold(until=until):
                reserved_until, deleted_at = until, None
            case ReleasedHold(at=at):
                reserved_until, deleted_at = at, at
        return {
            'id': reservation.id,
            'order_id': reservation.order_id,
            'listing_ticket_id': reservation.listing_ticket_id,
            'reserved_until': reserved_until,
            'created_at': reservation.created_at,
            'deleted_at': deleted_at,
        }

    @Logger.io
    async def create_many(self, *, reservations: List[Reservation]) -> List[Reservation]:
        if not reservations:
            return []
        try:
            # Savepoint so a lost race only undoes this insert, not the caller's transaction
            async with self.session.begin_nested():
                await self.session.execute(
                    insert(OrderTicketReservationModel),
                    [self._to_row(reservation) for reservation in reservations],
                )
        except IntegrityError as e:
            if ACTIVE_RESERVATION_INDEX in str(e.orig):
                raise ReservationConflictError() from e
            raise
        return reservations

    @Logger.io
    async def release_lapsed_for_tickets(self, *, ticket_ids: List[UUID], now: datetime) -> int:
        if not ticket_ids:
            return 0
        result = await self.session.execute(
            update(OrderTicketReservationModel)
            .where(
                OrderTicketReservationModel.listing_ticket_id.in_(ticket_ids),
                OrderTicketReservationModel.deleted_at.is_(None),
                OrderTicketReservationModel.reserved_until <= now,
            )
            .values(deleted_at=now)
        )
        return result.rowcount  # type: ignore[attr-defined]

    @Logger.io
    async def list_holding_by_order(self, *, order_id: UUID) -> List[Reservation]:
        result = await self.session.execute(
            select(OrderTicketReservationModel)
            .where(
                OrderTicketReservationModel.order_id == order_id,
                OrderTicketReservationModel.deleted_at.is_(None),
            )
            .order_by(OrderTicketReservationModel.created_at)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def release_by_order(self, *, order_id: UUID, now: datetime) -> int:
        result = await self.session.execute(
            update(OrderTicketReservationModel)
            .where(
                OrderTicketReservationModel.order_id == order_id,
                OrderTicketReservationModel.deleted_at.is_(None),
            )
            .values(deleted_at=now)
        )
        return result.rowcount  # type: ignore[attr-defined]

    @Logger.io
    async def extend_by_order(self, *, order_id: UUID, until: datetime) -> int:
        result = await self.session.execute(
            update(OrderTicketReservationModel)
            .where(
                OrderTicketReservationModel.order_id == order_id,
                OrderTicketReservationModel.deleted_at.is_(None),
            )
            .values(reserved_until=until)
        )
        return result.rowcount  # type: ignore[attr-defined]

    @Logger.io
    async def has_unreleased_for_listing(self, *, listing_id: UUID) -> bool:
        stmt = select(
            exists().where(
                OrderTicketReservationModel.listing_ticket_id == ListingTicketModel.id,
                ListingTicketModel.listing_id == listing_id,
                OrderTicketReservationModel.deleted_at.is_(None),
            )
        )
        return bool(await self.session.scalar(stmt))
