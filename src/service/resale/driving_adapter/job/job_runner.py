"""
Background jobs of the marketplace.

Each job is one use case run once; ``JobRunner`` is the single entry point shared
by the in-process scheduler, the HTTP trigger and the CLI script.
"""

from enum import StrEnum
import time
from typing import Any

from dependency_injector import containers
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.marketplace_metrics import metrics


class JobName(StrEnum):
    EXPIRE_ORDERS = 'expire_orders'
    SYNC_PAYMENTS = 'sync_payments'
    CHECK_HOLD_PERIODS = 'check_hold_periods'
    DISPATCH_NOTIFICATIONS = 'dispatch_notifications'


class JobRunner:
    def __init__(self, *, container: containers.Container) -> None:
        self.container = container
        self.tracer = trace.get_tracer(__name__)

    async def _dispatch(self, job: JobName) -> Any:
        match job:
            case JobName.EXPIRE_ORDERS:
                return await self.container.process_expired_orders_use_case().execute()
            case JobName.SYNC_PAYMENTS:
                return await self.container.process_payment_sync_use_case().execute()
            case JobName.CHECK_HOLD_PERIODS:
                return await self.container.check_hold_periods_use_case().execute()
            case JobName.DISPATCH_NOTIFICATIONS:
                return await self.container.dispatch_pending_notifications_use_case().execute()

    async def run(self, job: JobName) -> dict[str, Any]:
        with self.tracer.start_as_current_span('job.run', attributes={'job.name': str(job)}):
            started = time.perf_counter()
            try:
                result = await self._dispatch(job)
            except Exception:
                metrics.record_job_run(
                    job=job, success=False, duration=time.perf_counter() - started
                )
                raise

            duration = time.perf_counter() - started
            metrics.record_job_run(job=job, success=True, duration=duration)
            Logger.base.info(f'🕒 [JOB] {job} finished in {duration:.2f}s: {result.to_dict()}')
            return result.to_dict()
