"""
Seller Earnings Hold Engine

Earnings stay ``pending`` until ``hold_until`` (event end + hold period). Once due,
each earning is released to ``available`` or, when a dispute is open, ``retained``.
Batches are locked FOR UPDATE SKIP LOCKED so two runners split the work instead of
double-processing it.
"""

from datetime import datetime, timezone
from typing import List

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.marketplace_metrics import metrics
from src.service.resale.app.dto.job_result import HoldCheckResult
from src.service.resale.app.interface.i_dispute_checker import IDisputeChecker
from src.service.resale.domain.entity.seller_earning_entity import SellerEarning


class CheckHoldPeriodsUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        dispute_checker: IDisputeChecker,
        batch_size: int = 100,
    ) -> None:
        self.uow_factory = uow_factory
        self.dispute_checker = dispute_checker
        self.batch_size = batch_size

    @Logger.io
    async def execute(
        self, *, batch_size: int | None = None, now: datetime | None = None
    ) -> HoldCheckResult:
        now = now or datetime.now(timezone.utc)
        limit = batch_size or self.batch_size
        released = 0
        retained = 0

        while True:
            async with self.uow_factory() as uow:
                due = await uow.seller_earning_repo.list_due_pending_for_update(now=now, limit=limit)
                if not due:
                    break

                updated: List[SellerEarning] = []
                for earning in due:
                    if await self.dispute_checker.has_open_dispute(earning=earning):
                        updated.append(earning.retain(now=now))
                        retained += 1
                    else:
                        updated.append(earning.release(now=now))
                        released += 1

                await uow.seller_earning_repo.update_many(earnings=updated)
                await uow.commit()

            if len(due) < limit:
                break

        metrics.record_hold_results(released=released, retained=retained)
        if released or retained:
            Logger.base.info(f'💰 [HOLD] Released {released} earning(s), retained {retained}')
        return HoldCheckResult(released=released, retained=retained)
