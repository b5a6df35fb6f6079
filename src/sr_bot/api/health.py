"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from .. import __version__
from ..config.settings import Settings
from ..core.shutdown import ShutdownHandler
from ..dependencies import get_settings, get_shutdown_handler

router = APIRouter()


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str
    checks: Dict[str, Any]


@router.get(
    "/health",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    description="Report bot configuration and in-flight audio jobs"
)
async def health_check(
    settings: Settings = Depends(get_settings),
    shutdown_handler: ShutdownHandler = Depends(get_shutdown_handler),
) -> HealthStatus:
    """Perform health check and return service status."""
    checks = {
        "telegram_token": "configured" if settings.telegram.token else "missing",
        "transcription_endpoint": "configured" if settings.transcription.endpoint else "missing",
        "tracing": "exporting" if settings.telemetry.grpc_target else "disabled",
        "in_flight": shutdown_handler.pending,
    }

    overall_status = "healthy" if settings.telegram.token else "unhealthy"

    return HealthStatus(
        status=overall_status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        checks=checks
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness check for Kubernetes"
)
async def liveness():
    """Simple liveness probe."""
    return {"status": "alive"}
