from typing import Any

from fastapi import APIRouter, Depends

from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.service.resale.driving_adapter.http_controller.auth.job_token import require_job_token
from src.service.resale.driving_adapter.job.job_runner import JobName, JobRunner


router = APIRouter(dependencies=[Depends(require_job_token)])


def get_job_runner() -> JobRunner:
    return JobRunner(container=container)


@router.post('/{job_name}')
@Logger.io
async def trigger_job(
    job_name: JobName, runner: JobRunner = Depends(get_job_runner)
) -> dict[str, Any]:
    """Run one job once, e.g. from an external cron"""
    result = await runner.run(job_name)
    return {'job': job_name, 'result': result}
