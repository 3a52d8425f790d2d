from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.resale.domain.entity.event_entity import Event, TicketWave


@attrs.define
class ListingTicket:
    id: UUID
    listing_id: UUID
    ticket_number: int
    price: Decimal
    created_at: datetime
    sold_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_sellable(self) -> bool:
        return self.sold_at is None and self.cancelled_at is None and self.deleted_at is None


@attrs.define
class Listing:
    id: UUID
    publisher_user_id: str
    event_id: UUID
    ticket_wave_id: UUID
    currency: str
    created_at: datetime
    sold_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    tickets: List[ListingTicket] = attrs.field(factory=list)

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        publisher_user_id: str,
        event: Event,
        ticket_wave: TicketWave,
        quantity: int,
        price: Decimal,
        max_quantity: int,
        now: datetime,
    ) -> 'Listing':
        if event.is_finished(now=now):
            raise ValidationError('Cannot list tickets for an event that has already ended')
        if not ticket_wave.belongs_to(event_id=event.id):
            raise ValidationError('Ticket wave does not belong to this event')
        if quantity < 1 or quantity > max_quantity:
            raise ValidationError(f'Quantity must be between 1 and {max_quantity}')
        if price <= 0:
            raise ValidationError('Price must be greater than zero')
        if price > ticket_wave.face_value:
            raise ValidationError(
                f'Price {price} exceeds the face value of {ticket_wave.name} ({ticket_wave.face_value})'
            )

        listing_id = uuid7()
        tickets = [
            ListingTicket(
                id=uuid7(),
                listing_id=listing_id,
                ticket_number=number,
                price=price,
                created_at=now,
            )
            for number in range(1, quantity + 1)
        ]
        return cls(
            id=listing_id,
            publisher_user_id=publisher_user_id,
            event_id=event.id,
            ticket_wave_id=ticket_wave.id,
            currency=ticket_wave.currency,
            created_at=now,
            tickets=tickets,
        )

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None and self.sold_at is None

    @Logger.io
    def cancel(self, *, now: datetime) -> 'Listing':
        """Soft-delete the listing and withdraw its unsold tickets"""
        if self.deleted_at is not None:
            raise ValidationError('Listing already cancelled')
        if self.sold_at is not None:
            raise ValidationError('Cannot cancel a sold out listing')

        tickets = [
            ticket if ticket.sold_at is not None else attrs.evolve(ticket, cancelled_at=now)
            for ticket in self.tickets
        ]
        return attrs.evolve(self, deleted_at=now, tickets=tickets)
