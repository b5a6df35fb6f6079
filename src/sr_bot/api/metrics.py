"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..core.metrics import AudioMetrics
from ..dependencies import get_metrics

router = APIRouter()


@router.get(
    "/metrics",
    response_class=Response,
    summary="Prometheus metrics",
    description="Expose metrics in Prometheus format"
)
async def metrics(audio_metrics: AudioMetrics = Depends(get_metrics)):
    """Return metrics in Prometheus format."""
    return Response(
        content=audio_metrics.render(),
        media_type=CONTENT_TYPE_LATEST
    )
