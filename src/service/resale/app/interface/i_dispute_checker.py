from abc import ABC, abstractmethod

from src.service.resale.domain.entity.seller_earning_entity import SellerEarning


class IDisputeChecker(ABC):
    """Decides whether a sale has an open dispute or report that blocks the seller's payout"""

    @abstractmethod
    async def has_open_dispute(self, *, earning: SellerEarning) -> bool:
        pass
