"""
OpenTelemetry tracing for the marketplace API and its background jobs.

- Resource carries service name, version and deployment environment from settings
- Head sampling by OTEL_SAMPLE_RATIO, always following the parent decision
- OTLP export when OTEL_EXPORTER_OTLP_ENDPOINT is set, console export for local debugging
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from src.platform.config.core_setting import Settings, settings as default_settings


# Probes and docs carry no marketplace traffic
UNTRACED_URLS = 'health,metrics,docs,openapi.json'


class TracingConfig:
    """
    Usage:
        tracing = TracingConfig(service_name=settings.SERVICE_NAME)
        tracing.setup()
        ...
        tracing.shutdown()
    """

    def __init__(self, *, service_name: str, config: Settings | None = None) -> None:
        self.service_name = service_name
        self.config = config or default_settings
        self._provider: TracerProvider | None = None

    def _resource(self) -> Resource:
        return Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: self.config.VERSION,
                DEPLOYMENT_ENVIRONMENT: self.config.ENVIRONMENT,
            }
        )

    def setup(self) -> None:
        self._provider = TracerProvider(
            resource=self._resource(),
            sampler=ParentBased(TraceIdRatioBased(self.config.OTEL_SAMPLE_RATIO)),
        )

        if self.config.OTEL_EXPORTER_OTLP_ENDPOINT:
            exporter = OTLPSpanExporter(endpoint=self.config.OTEL_EXPORTER_OTLP_ENDPOINT)
            self._provider.add_span_processor(BatchSpanProcessor(exporter))

        if self.config.OTEL_CONSOLE_EXPORT:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    @staticmethod
    def instrument_fastapi(*, app: FastAPI) -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)

    @staticmethod
    def instrument_sqlalchemy(*, engine: AsyncEngine) -> None:
        # The instrumentor hooks sync engine events; AsyncEngine wraps one
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()
