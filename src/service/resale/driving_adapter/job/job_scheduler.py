from typing import Mapping

import anyio
from anyio.abc import TaskGroup

from src.platform.config.core_setting import Settings
from src.platform.logging.loguru_io import Logger
from src.service.resale.driving_adapter.job.job_runner import JobName, JobRunner


def job_intervals(settings: Settings) -> dict[JobName, float]:
    return {
        JobName.EXPIRE_ORDERS: settings.EXPIRED_ORDERS_INTERVAL_SECONDS,
        JobName.SYNC_PAYMENTS: settings.PAYMENT_SYNC_INTERVAL_SECONDS,
        JobName.CHECK_HOLD_PERIODS: settings.HOLD_CHECK_INTERVAL_SECONDS,
        JobName.DISPATCH_NOTIFICATIONS: settings.NOTIFICATION_DISPATCH_INTERVAL_SECONDS,
    }


class JobScheduler:
    """Runs every job on its own interval inside the app's task group"""

    def __init__(self, *, runner: JobRunner, intervals: Mapping[JobName, float]) -> None:
        self.runner = runner
        self.intervals = intervals

    async def run_once(self, job: JobName) -> bool:
        try:
            await self.runner.run(job)
            return True
        except Exception as e:
            # Next tick retries; one failed run never stops the loop
            Logger.base.exception(f'🕒 [JOB] {job} failed: {e}')
            return False

    async def _loop(self, job: JobName, interval: float) -> None:
        while True:
            await self.run_once(job)
            await anyio.sleep(interval)

    async def start(self, *, task_group: TaskGroup) -> None:
        for job, interval in self.intervals.items():
            task_group.start_soon(self._loop, job, interval, name=f'job:{job}')
            Logger.base.info(f'🕒 [JOB] Scheduled {job} every {interval}s')
