from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.resale.domain.entity.seller_earning_entity import Payout, SellerEarning
from src.service.resale.domain.enum.earning_status import SellerEarningStatus


class ISellerEarningRepo(ABC):
    @abstractmethod
    async def create_many(self, *, earnings: List[SellerEarning]) -> List[SellerEarning]:
        pass

    @abstractmethod
    async def list_due_pending_for_update(
        self, *, now: datetime, limit: int
    ) -> List[SellerEarning]:
        """Pending earnings whose hold is over, locked; rows locked elsewhere are skipped"""
        pass

    @abstractmethod
    async def get_by_ids_for_update(self, *, earning_ids: List[UUID]) -> List[SellerEarning]:
        pass

    @abstractmethod
    async def list_by_seller(
        self, *, seller_user_id: str, status: SellerEarningStatus | None = None
    ) -> List[SellerEarning]:
        pass

    @abstractmethod
    async def list_by_payout(self, *, payout_id: UUID) -> List[SellerEarning]:
        pass

    @abstractmethod
    async def list_by_order(self, *, order_id: UUID) -> List[SellerEarning]:
        pass

    @abstractmethod
    async def update_many(self, *, earnings: List[SellerEarning]) -> None:
        """Persist status / payout link / timestamps of the given earnings"""
        pass


class IPayoutRepo(ABC):
    @abstractmethod
    async def create(self, *, payout: Payout) -> Payout:
        pass

    @abstractmethod
    async def get_by_id_for_update(self, *, payout_id: UUID) -> Payout | None:
        pass

    @abstractmethod
    async def update(self, *, payout: Payout) -> Payout:
        pass
