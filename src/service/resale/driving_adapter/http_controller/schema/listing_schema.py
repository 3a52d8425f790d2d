from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.service.resale.domain.entity.listing_entity import Listing


class ListingCreateRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'event_id': '01966c3a-0000-7000-8000-000000000001',
                'ticket_wave_id': '01966c3a-0000-7000-8000-000000000002',
                'quantity': 2,
                'price': '800.00',
            }
        }
    )

    event_id: UUID
    ticket_wave_id: UUID
    quantity: int = Field(ge=1)
    price: Decimal = Field(gt=0, decimal_places=2)


class ListingTicketResponse(BaseModel):
    id: UUID
    ticket_number: int
    price: Decimal
    sold_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class ListingResponse(BaseModel):
    id: UUID
    publisher_user_id: str
    event_id: UUID
    ticket_wave_id: UUID
    currency: str
    created_at: datetime
    sold_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    tickets: List[ListingTicketResponse]

    @classmethod
    def from_entity(cls, listing: Listing) -> 'ListingResponse':
        return cls(
            id=listing.id,
            publisher_user_id=listing.publisher_user_id,
            event_id=listing.event_id,
            ticket_wave_id=listing.ticket_wave_id,
            currency=listing.currency,
            created_at=listing.created_at,
            sold_at=listing.sold_at,
            deleted_at=listing.deleted_at,
            tickets=[
                ListingTicketResponse(
                    id=ticket.id,
                    ticket_number=ticket.ticket_number,
                    price=ticket.price,
                    sold_at=ticket.sold_at,
                    cancelled_at=ticket.cancelled_at,
                )
                for ticket in listing.tickets
            ],
        )
