"""OpenTelemetry tracing for the API process and the CLI runner.

Exporters: console (development), otlp (gRPC), or none. SQLAlchemy is
instrumented before the lazy engine exists, so every engine created later
is traced. FastAPI is instrumented only in the API process.
"""

import logging
import threading
from typing import Any

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

logger = logging.getLogger(__name__)

# Liveness probes hit every few seconds; tracing them is noise.
UNTRACED_URLS = "/api/v1/health"


def build_exporter(exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
    """Span exporter for the configured type; None means spans are recorded but not exported."""
    if exporter_type == "none":
        return None
    if exporter_type == "otlp":
        if otlp_endpoint:
            return OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
        logger.warning("OTLP exporter requested without an endpoint, using console")
    elif exporter_type != "console":
        logger.warning("Unknown exporter type '%s', using console", exporter_type)
    return ConsoleSpanExporter()


class TelemetryConfig:
    """Owns the tracer provider and the instrumentations hooked onto it."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        environment: str = "development",
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.tracer_provider: TracerProvider | None = None

    def start(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> bool:
        """Install the global tracer provider, then instrument logging and SQLAlchemy.

        Returns False (and leaves tracing off) when setup fails.
        """
        try:
            provider = TracerProvider(
                resource=Resource(
                    attributes={
                        SERVICE_NAME: self.service_name,
                        SERVICE_VERSION: self.service_version,
                        "deployment.environment": self.environment,
                    }
                ),
                sampler=TraceIdRatioBased(sample_rate),
            )
            exporter = build_exporter(exporter_type, otlp_endpoint)
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
            LoggingInstrumentor().instrument(tracer_provider=provider, set_logging_format=False)
            SQLAlchemyInstrumentor().instrument(tracer_provider=provider)
        except Exception as e:
            logger.exception("Failed to initialize telemetry: %s", e)
            return False
        self.tracer_provider = provider
        logger.info(
            "OpenTelemetry initialized: service=%s exporter=%s sample_rate=%.2f",
            self.service_name,
            exporter_type,
            sample_rate,
        )
        return True

    def instrument_fastapi(self, app: FastAPI) -> None:
        if self.tracer_provider is None:
            return
        try:
            FastAPIInstrumentor.instrument_app(
                app, tracer_provider=self.tracer_provider, excluded_urls=UNTRACED_URLS
            )
        except Exception as e:
            logger.exception("Failed to instrument FastAPI: %s", e)

    def shutdown(self) -> None:
        """Flush pending spans. The CLI runner exits right after, so this must run."""
        if self.tracer_provider is None:
            return
        try:
            SQLAlchemyInstrumentor().uninstrument()
            LoggingInstrumentor().uninstrument()
            self.tracer_provider.shutdown()
        except Exception as e:
            logger.exception("Error during telemetry shutdown: %s", e)
        self.tracer_provider = None


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry


def setup_from_settings(settings: Any) -> TelemetryConfig | None:
    """Start and register telemetry when telemetry_enabled; otherwise None."""
    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled")
        return None
    telemetry = TelemetryConfig(
        service_name=settings.app_name,
        service_version=settings.app_version,
        environment=settings.telemetry_environment,
    )
    if not telemetry.start(
        exporter_type=settings.telemetry_exporter,
        otlp_endpoint=settings.telemetry_otlp_endpoint,
        sample_rate=settings.telemetry_sample_rate,
    ):
        return None
    set_telemetry(telemetry)
    return telemetry
