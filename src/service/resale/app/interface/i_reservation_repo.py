from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.resale.domain.entity.reservation_entity import Reservation


class IReservationRepo(ABC):
    @abstractmethod
    async def create_many(self, *, reservations: List[Reservation]) -> List[Reservation]:
        """
        Insert reservations atomically (all or none).

        Raises:
            ReservationConflictError: a ticket already has an unreleased reservation
        """
        pass

    @abstractmethod
    async def release_lapsed_for_tickets(self, *, ticket_ids: List[UUID], now: datetime) -> int:
        """Release unreleased reservations of these tickets whose window already passed"""
        pass

    @abstractmethod
    async def list_holding_by_order(self, *, order_id: UUID) -> List[Reservation]:
        """Unreleased reservations of the order (lapsed ones included)"""
        pass

    @abstractmethod
    async def release_by_order(self, *, order_id: UUID, now: datetime) -> int:
        pass

    @abstractmethod
    async def extend_by_order(self, *, order_id: UUID, until: datetime) -> int:
        pass

    @abstractmethod
    async def has_unreleased_for_listing(self, *, listing_id: UUID) -> bool:
        """Whether any ticket of the listing is still held by an unreleased reservation"""
        pass
