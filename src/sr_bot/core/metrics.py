"""Process-wide metrics collaborator for the audio relay."""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from ..models.recognition import ProcessingOutcome


class AudioMetrics:
    """Metrics handle created once at startup and passed into each run.

    Each instance owns its registry so tests and multiple apps never
    collide on metric names. prometheus_client counters are thread-safe.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.messages_processed = Counter(
            "audio_messages_processed_total",
            "Total number of processed audio messages.",
            ["status"],
            registry=self.registry,
        )

        self.pipeline_errors = Counter(
            "audio_pipeline_errors_total",
            "Total number of audio pipeline failures by error type.",
            ["error_type"],
            registry=self.registry,
        )

        self.processing_duration = Histogram(
            "audio_processing_duration_seconds",
            "Audio pipeline run duration in seconds",
            ["status"],
            registry=self.registry,
        )

        # Export both status series from the start
        for outcome in ProcessingOutcome:
            self.messages_processed.labels(status=outcome.value)

    def record_outcome(self, outcome: ProcessingOutcome, duration: Optional[float] = None) -> None:
        """Count one finished run."""
        self.messages_processed.labels(status=outcome.value).inc()
        if duration is not None:
            self.processing_duration.labels(status=outcome.value).observe(duration)

    def record_error(self, error_type: str) -> None:
        self.pipeline_errors.labels(error_type=error_type).inc()

    def processed_count(self, outcome: ProcessingOutcome) -> float:
        """Current value of the processed counter for ``outcome``."""
        value = self.registry.get_sample_value(
            "audio_messages_processed_total", {"status": outcome.value}
        )
        return value or 0.0

    def error_count(self, error_type: str) -> float:
        value = self.registry.get_sample_value(
            "audio_pipeline_errors_total", {"error_type": error_type}
        )
        return value or 0.0

    def render(self) -> bytes:
        return generate_latest(self.registry)
