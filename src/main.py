"""
Production FastAPI Application

HTTP API plus, when JOBS_ENABLED, the in-process job scheduler.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container, setup
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import dispose_engines, get_engine
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.resale.driving_adapter.job.job_runner import JobRunner
from src.service.resale.driving_adapter.job.job_scheduler import JobScheduler, job_intervals


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Resale] Starting up...')

    tracing = TracingConfig(service_name=settings.SERVICE_NAME)
    tracing.setup()
    Logger.base.info('📊 [Resale] OpenTelemetry tracing configured')

    setup()
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Resale] Dependency injection wired')

    tracing.instrument_sqlalchemy(engine=get_engine())
    Logger.base.info('🗄️  [Resale] Database engine ready + instrumented')

    async with anyio.create_task_group() as tg:
        if settings.JOBS_ENABLED:
            scheduler = JobScheduler(
                runner=JobRunner(container=container), intervals=job_intervals(settings)
            )
            await scheduler.start(task_group=tg)
            Logger.base.info('🕒 [Resale] Job scheduler started')

        Logger.base.info('✅ [Resale] Ready to serve requests')
        yield

        Logger.base.info('🛑 [Resale] Shutting down...')
        tg.cancel_scope.cancel()

    await dispose_engines()
    Logger.base.info('🗄️  [Resale] Database engines disposed')

    tracing.shutdown()
    container.unwire()
    Logger.base.info('👋 [Resale] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
