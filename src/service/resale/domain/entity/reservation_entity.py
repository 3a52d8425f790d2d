from datetime import datetime
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7


@attrs.frozen
class ActiveHold:
    until: datetime


@attrs.frozen
class ReleasedHold:
    at: datetime


ReservationHold = ActiveHold | ReleasedHold


@attrs.define
class Reservation:
    """
    A hold of one listing ticket for one order.

    While ``hold`` is an ``ActiveHold`` the row owns its ticket: the store allows
    one unreleased reservation per ticket. Past ``until`` the hold is lapsed but
    still owns the ticket until the sweeper (or a new allocation) releases it.
    """

    id: UUID
    order_id: UUID
    listing_ticket_id: UUID
    hold: ReservationHold
    created_at: datetime

    @classmethod
    def hold_ticket(
        cls, *, order_id: UUID, listing_ticket_id: UUID, until: datetime, now: datetime
    ) -> 'Reservation':
        return cls(
            id=uuid7(),
            order_id=order_id,
            listing_ticket_id=listing_ticket_id,
            hold=ActiveHold(until=until),
            created_at=now,
        )

    @property
    def holds_ticket(self) -> bool:
        return isinstance(self.hold, ActiveHold)

    def is_active(self, *, now: datetime) -> bool:
        match self.hold:
            case ActiveHold(until=until):
                return until > now
            case ReleasedHold():
                return False

    def is_lapsed(self, *, now: datetime) -> bool:
        match self.hold:
            case ActiveHold(until=until):
                return until <= now
            case ReleasedHold():
                return False

    def release(self, *, now: datetime) -> 'Reservation':
        if isinstance(self.hold, ReleasedHold):
            return self
        return attrs.evolve(self, hold=ReleasedHold(at=now))

    def extend(self, *, until: datetime) -> 'Reservation':
        if isinstance(self.hold, ReleasedHold):
            return self
        return attrs.evolve(self, hold=ActiveHold(until=until))
