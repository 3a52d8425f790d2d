"""
Payment status sync

Safety net for lost webhooks. Phase 1 polls the provider for payments that
stayed unsettled longer than ``min_age``; phase 2 expires lapsed pending
orders whose every payment failed.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import anyio

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.expire_order_use_case import ExpireOrderUseCase
from src.service.resale.app.command.process_provider_event_use_case import (
    ProcessProviderEventUseCase,
)
from src.service.resale.app.dto.job_result import PaymentSyncResult
from src.service.resale.domain.entity.payment_entity import Payment
from src.service.resale.domain.enum.payment_status import ReconciliationSource


class ProcessPaymentSyncUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        reconciler: ProcessProviderEventUseCase,
        expire_order: ExpireOrderUseCase,
        min_age: timedelta = timedelta(minutes=5),
        limit: int = 500,
        batch_size: int = 25,
    ) -> None:
        self.uow_factory = uow_factory
        self.reconciler = reconciler
        self.expire_order = expire_order
        self.min_age = min_age
        self.limit = limit
        self.batch_size = batch_size

    @Logger.io
    async def execute(self, *, now: datetime | None = None) -> PaymentSyncResult:
        now = now or datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            payments = await uow.payment_repo.list_unsettled_created_before(
                created_before=now - self.min_age, limit=self.limit
            )

        synced = 0
        failed = 0
        for start in range(0, len(payments), self.batch_size):
            batch = payments[start : start + self.batch_size]
            results: List[bool] = []

            async def sync_one(payment: Payment) -> None:
                try:
                    await self.reconciler.execute(
                        provider=payment.provider,
                        provider_payment_id=payment.provider_payment_id,
                        source=ReconciliationSource.POLL,
                        now=now,
                    )
                    results.append(True)
                except Exception as e:
                    Logger.base.warning(f'🔄 [SYNC] Payment {payment.id} sync failed: {e}')
                    results.append(False)

            async with anyio.create_task_group() as tg:
                for payment in batch:
                    tg.start_soon(sync_one, payment)

            synced += results.count(True)
            failed += results.count(False)

        orders_expired = await self._expire_orders_with_failed_payments(now=now)

        Logger.base.info(
            f'🔄 [SYNC] {synced} payment(s) synced, {failed} failed, '
            f'{orders_expired} order(s) with only failed payments expired'
        )
        return PaymentSyncResult(synced=synced, failed=failed, orders_expired=orders_expired)

    async def _expire_orders_with_failed_payments(self, *, now: datetime) -> int:
        async with self.uow_factory() as uow:
            order_ids = await uow.order_repo.list_lapsed_pending_ids_with_only_failed_payments(
                now=now, limit=self.limit
            )

        expired = 0
        for order_id in order_ids:
            try:
                if await self.expire_order.execute(order_id=order_id, now=now):
                    expired += 1
            except Exception as e:
                Logger.base.error(f'🔄 [SYNC] Failed to expire order {order_id}: {e}')
        return expired
