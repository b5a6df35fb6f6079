"""OpenTelemetry tracer provider setup."""

from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ..config.settings import TelemetryConfig
from ..utils.logging import get_logger

logger = get_logger(__name__)

TRACER_NAME = "telegram-sr-bot"


def init_tracing(config: TelemetryConfig) -> TracerProvider:
    """Create the global tracer provider.

    Spans are exported over OTLP/gRPC when ``grpc_target`` is set; without
    it the provider still records spans so the code paths stay the same.
    """
    resource = Resource.create({SERVICE_NAME: config.service_name})
    provider = TracerProvider(resource=resource)

    if config.grpc_target:
        exporter = OTLPSpanExporter(endpoint=config.grpc_target, insecure=config.insecure)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info(f"Exporting traces to {config.grpc_target}")
    else:
        logger.warning("TELEMETRY_GRPC_TARGET is not set, traces will not be exported")

    trace.set_tracer_provider(provider)
    return provider


def get_tracer(provider: Optional[TracerProvider] = None) -> trace.Tracer:
    """Return the bot tracer from ``provider`` or the global provider."""
    if provider is not None:
        return provider.get_tracer(TRACER_NAME)
    return trace.get_tracer(TRACER_NAME)


def shutdown_tracing(provider: TracerProvider) -> None:
    """Flush pending spans and stop the provider."""
    try:
        provider.shutdown()
    except Exception as e:
        logger.error(f"Failed to shut down trace provider: {e}")
