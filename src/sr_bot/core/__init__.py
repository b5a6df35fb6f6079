"""Process-wide services: metrics, tracing, shutdown."""
