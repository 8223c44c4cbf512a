"""Common Pydantic v2 data models shared across services."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Health status of a service."""
    status: str = Field(
        default="healthy",
        pattern=r"^(healthy|degraded|unhealthy)$"
    )
    service_name: str
    version: str
    instances_configured: int = 0
    uptime_seconds: float
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}
