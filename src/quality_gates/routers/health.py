"""Health check endpoint for the Quality Gates service."""
from __future__ import annotations

import time

from fastapi import APIRouter, Request

from src.shared.constants import QUALITY_GATES_SERVICE_NAME, VERSION
from src.shared.models.common import HealthStatus

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthStatus)
async def health(request: Request) -> HealthStatus:
    """Health check endpoint.

    Reports ``degraded`` while no SonarQube instance is configured, since
    every gate check would fail.
    """
    store = getattr(request.app.state, "store", None)
    instances = len(store) if store is not None else 0
    start_time = getattr(request.app.state, "start_time", time.time())

    return HealthStatus(
        status="healthy" if instances else "degraded",
        service_name=QUALITY_GATES_SERVICE_NAME,
        version=VERSION,
        instances_configured=instances,
        uptime_seconds=time.time() - start_time,
    )
