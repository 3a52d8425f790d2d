from datetime import datetime
from decimal import Decimal
from uuid import UUID

import attrs


@attrs.define
class Event:
    """Read model of an event; events are owned by the catalog, not by this service"""

    id: UUID
    name: str
    end_date: datetime

    def is_finished(self, *, now: datetime) -> bool:
        return self.end_date <= now


@attrs.define
class TicketWave:
    id: UUID
    event_id: UUID
    name: str
    face_value: Decimal
    currency: str

    def belongs_to(self, *, event_id: UUID) -> bool:
        return self.event_id == event_id
