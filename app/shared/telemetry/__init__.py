"""Logging setup, OpenTelemetry lifecycle and tracing helpers."""

from app.shared.telemetry.logging import get_logger, request_id_var, setup_logging
from app.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
    setup_from_settings,
)
from app.shared.telemetry.tracing import add_span_attributes, set_span_error, traced

__all__ = [
    "TelemetryConfig",
    "add_span_attributes",
    "get_logger",
    "get_telemetry",
    "request_id_var",
    "set_span_error",
    "set_telemetry",
    "setup_from_settings",
    "setup_logging",
    "traced",
]
