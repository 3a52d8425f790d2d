from src.service.resale.app.interface.i_dispute_checker import IDisputeChecker
from src.service.resale.domain.entity.seller_earning_entity import SellerEarning


class NoDisputeChecker(IDisputeChecker):
    """No dispute or report mechanism exists yet, so every hold is released"""

    async def has_open_dispute(self, *, earning: SellerEarning) -> bool:
        return False
