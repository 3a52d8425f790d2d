"""
Expiration Sweeper

Finds pending orders whose reservation window lapsed and expires them one by
one, each in its own transaction, so one bad order never blocks the rest.

Before expiring, the order's unsettled payments are re-synced with the provider:
a buyer who paid seconds before the deadline is confirmed instead of expired.
"""

from datetime import datetime, timezone
from typing import List
from uuid import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.expire_order_use_case import ExpireOrderUseCase
from src.service.resale.app.command.process_provider_event_use_case import (
    ProcessProviderEventUseCase,
)
from src.service.resale.app.dto.job_result import ExpiredOrdersResult
from src.service.resale.domain.enum.payment_status import ReconciliationSource


class ProcessExpiredOrdersUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        reconciler: ProcessProviderEventUseCase,
        expire_order: ExpireOrderUseCase,
        batch_limit: int = 500,
    ) -> None:
        self.uow_factory = uow_factory
        self.reconciler = reconciler
        self.expire_order = expire_order
        self.batch_limit = batch_limit

    async def _resync_payments(self, *, order_id: UUID, now: datetime) -> None:
        async with self.uow_factory() as uow:
            payments = await uow.payment_repo.list_by_order(order_id=order_id)

        for payment in payments:
            if payment.status.is_settled:
                continue
            try:
                await self.reconciler.execute(
                    provider=payment.provider,
                    provider_payment_id=payment.provider_payment_id,
                    source=ReconciliationSource.POLL,
                    now=now,
                )
            except Exception as e:
                Logger.base.warning(
                    f'⏰ [SWEEP] Could not re-sync payment {payment.id} of order {order_id}: {e}'
                )

    @Logger.io
    async def execute(self, *, now: datetime | None = None) -> ExpiredOrdersResult:
        now = now or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            order_ids = await uow.order_repo.list_lapsed_pending_ids(now=now, limit=self.batch_limit)

        expired: List[UUID] = []
        for order_id in order_ids:
            try:
                await self._resync_payments(order_id=order_id, now=now)
                if await self.expire_order.execute(order_id=order_id, now=now):
                    expired.append(order_id)
            except Exception as e:
                Logger.base.error(f'⏰ [SWEEP] Failed to expire order {order_id}: {e}')

        if order_ids:
            Logger.base.info(
                f'⏰ [SWEEP] Expired {len(expired)} of {len(order_ids)} lapsed pending order(s)'
            )
        return ExpiredOrdersResult(processed_count=len(expired), order_ids=expired)
