"""
FastAPI app factory shared by the production entry point and the HTTP tests.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.observability.tracing import TracingConfig
from src.service.resale.driving_adapter.http_controller.earning_controller import (
    earning_router,
    payout_router,
)
from src.service.resale.driving_adapter.http_controller.job_controller import (
    router as job_router,
)
from src.service.resale.driving_adapter.http_controller.listing_controller import (
    router as listing_router,
)
from src.service.resale.driving_adapter.http_controller.order_controller import (
    router as order_router,
)
from src.service.resale.driving_adapter.http_controller.webhook_controller import (
    router as webhook_router,
)


# (router, prefix, tag)
MARKETPLACE_ROUTES: list[tuple[APIRouter, str, str]] = [
    (listing_router, '/api/listings', 'listing'),
    (order_router, '/api/orders', 'order'),
    (earning_router, '/api/earnings', 'earning'),
    (payout_router, '/api/payouts', 'payout'),
    (webhook_router, '/api/webhooks', 'webhook'),
    (job_router, '/api/jobs', 'job'),
]


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]],
    title_suffix: str = '',
) -> FastAPI:
    """
    Args:
        lifespan: startup/shutdown context manager; tests pass a no-op one
        title_suffix: appended to the OpenAPI title, e.g. " (Test)"
    """
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description='Peer-to-peer ticket resale: listings, orders, dLocal payments and seller payouts',
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Instrument before routes are mounted
    TracingConfig.instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)

    for router, prefix, tag in MARKETPLACE_ROUTES:
        app.include_router(router, prefix=prefix, tags=[tag])

    @app.get('/health')
    async def health_check() -> dict[str, str]:
        return {
            'status': 'healthy',
            'service': settings.PROJECT_NAME,
            'version': settings.VERSION,
            'environment': settings.ENVIRONMENT,
        }

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
