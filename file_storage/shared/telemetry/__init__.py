"""Shared telemetry: logging setup and tracing helpers."""

from file_storage.shared.telemetry.logging import get_logger, setup_logging
from file_storage.shared.telemetry.telemetry import TelemetryConfig, setup_telemetry
from file_storage.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "setup_logging",
    "get_logger",
    "TelemetryConfig",
    "setup_telemetry",
    "traced",
    "add_span_attributes",
]
