"""OpenTelemetry setup for storage and processing spans.

Without setup_telemetry() the OpenTelemetry API stays a no-op and the
traced decorator costs next to nothing.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from file_storage.core.config import Settings, get_settings
from file_storage.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# Exporter name -> span processor factory; "none" keeps spans in-process.
EXPORTERS: dict[str, Callable[[], SpanProcessor | None]] = {
    "console": lambda: BatchSpanProcessor(ConsoleSpanExporter()),
    "none": lambda: None,
}


@dataclass
class TelemetryConfig:
    service_name: str
    service_version: str
    enabled: bool = True
    environment: str = "development"
    tracer_provider: TracerProvider | None = field(default=None, init=False)

    def setup_telemetry(self, exporter_type: str = "console") -> TracerProvider | None:
        """Install a global tracer provider; returns None when disabled.

        Raises:
            ValueError: Unknown exporter type.
        """
        if not self.enabled:
            logger.info("Telemetry disabled")
            return None
        if exporter_type not in EXPORTERS:
            raise ValueError(
                f"Unknown telemetry exporter '{exporter_type}'. Supported: {sorted(EXPORTERS)}"
            )
        provider = TracerProvider(
            resource=Resource(
                attributes={
                    SERVICE_NAME: self.service_name,
                    SERVICE_VERSION: self.service_version,
                    "deployment.environment": self.environment,
                }
            )
        )
        processor = EXPORTERS[exporter_type]()
        if processor is not None:
            provider.add_span_processor(processor)
        trace.set_tracer_provider(provider)
        self.tracer_provider = provider
        logger.info("Tracing %s %s with %s exporter", self.service_name, self.service_version, exporter_type)
        return provider

    def shutdown(self) -> None:
        """Flush pending spans."""
        if self.tracer_provider is not None:
            self.tracer_provider.shutdown()
            self.tracer_provider = None


def setup_telemetry(settings: Settings | None = None) -> TelemetryConfig:
    s = settings or get_settings()
    config = TelemetryConfig(
        service_name=s.app_name,
        service_version=s.app_version,
        enabled=s.telemetry_enabled,
        environment=s.telemetry_environment,
    )
    config.setup_telemetry(s.telemetry_exporter)
    return config
