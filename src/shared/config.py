"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class SharedConfig(BaseSettings):
    """Base configuration shared across all services."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class QualityGatesConfig(SharedConfig):
    """Configuration for the Quality Gates service and CLI."""
    store_path: str = Field(
        default="./data/instances.json", validation_alias="STORE_PATH"
    )
    http_timeout: float = Field(default=30.0, validation_alias="HTTP_TIMEOUT")
    max_retries: int = Field(default=2, ge=0, validation_alias="MAX_RETRIES")
