from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from src.service.resale.domain.entity.listing_entity import Listing
from src.service.resale.domain.value_object.ticket_snapshot import TicketSnapshot


class IListingRepo(ABC):
    """
    Ticket inventory: listings and their listing tickets.

    Sold/cancelled markers are only ever set through conditional updates so a
    ticket that already left the market is never touched twice.
    """

    @abstractmethod
    async def create(self, *, listing: Listing) -> Listing:
        pass

    @abstractmethod
    async def get_by_id(self, *, listing_id: UUID) -> Listing | None:
        """Listing with all its tickets"""
        pass

    @abstractmethod
    async def cancel(self, *, listing: Listing) -> Listing:
        """Persist the soft delete of a listing and the cancelled_at of its unsold tickets"""
        pass

    @abstractmethod
    async def find_available_tickets_for_update(
        self, *, ticket_wave_id: UUID, price: Decimal, limit: int, now: datetime
    ) -> List[TicketSnapshot]:
        """
        Oldest-first unsold, uncancelled, undeleted tickets of the wave at exactly
        ``price`` with no active reservation, row-locked for the current transaction.
        Rows locked by a concurrent allocation are skipped.
        """
        pass

    @abstractmethod
    async def get_ticket_snapshots(self, *, ticket_ids: List[UUID]) -> List[TicketSnapshot]:
        pass

    @abstractmethod
    async def mark_tickets_sold(self, *, ticket_ids: List[UUID], now: datetime) -> List[UUID]:
        """Set sold_at on tickets that are still sellable; returns the ids actually updated"""
        pass

    @abstractmethod
    async def mark_sold_out_listings(self, *, listing_ids: List[UUID], now: datetime) -> List[UUID]:
        """Set sold_at on the given listings whose every ticket is sold"""
        pass
