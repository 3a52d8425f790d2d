from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


ACTIVE_RESERVATION_INDEX = 'order_ticket_reservations_unique_active_reservation'


class OrderTicketReservationModel(Base):
    """
    deleted_at IS NULL means the row still holds its ticket (reserved_until may
    already be in the past until the sweeper or the next allocation releases it)
    """

    __tablename__ = 'order_ticket_reservations'
    __table_args__ = (
        Index(
            ACTIVE_RESERVATION_INDEX,
            'listing_ticket_id',
            unique=True,
            postgresql_where=text('deleted_at IS NULL'),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)  # UUID7
    order_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey('orders.id', deferrable=True, initially='DEFERRED'),
        nullable=False,
        index=True,
    )
    listing_ticket_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('listing_tickets.id'), nullable=False
    )
    reserved_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
