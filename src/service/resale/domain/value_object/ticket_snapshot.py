from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import attrs


@attrs.frozen
class TicketSnapshot:
    """A listing ticket joined with the listing fields the order flows need"""

    ticket_id: UUID
    listing_id: UUID
    publisher_user_id: str
    ticket_wave_id: UUID
    price: Decimal
    currency: str
    created_at: datetime
    sold_at: Optional[datetime] = None
