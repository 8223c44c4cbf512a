"""Global SonarQube instance configuration endpoints."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request

from src.quality_gates.services.config_store import GlobalConfigStore, duplicate_names
from src.shared.errors import NotFoundError, ValidationError
from src.shared.models.quality_gates import InstanceConfig, InstanceView

router = APIRouter(prefix="/api", tags=["instances"])


def _store(request: Request) -> GlobalConfigStore:
    return request.app.state.store


@router.get("/instances", response_model=list[InstanceView])
async def list_instances(request: Request) -> list[InstanceView]:
    """List configured instances in resolution order, without credentials."""
    return [InstanceView.from_instance(i) for i in _store(request).snapshot()]


@router.put("/instances", response_model=list[InstanceView])
async def replace_instances(
    body: list[InstanceConfig], request: Request
) -> list[InstanceView]:
    """Replace the whole instance list. Builds already running are unaffected."""
    duplicates = duplicate_names(body)
    if duplicates:
        raise ValidationError(
            detail=f"Duplicate instance names: {', '.join(duplicates)}"
        )
    store = _store(request)
    await asyncio.to_thread(store.replace, body)
    return [InstanceView.from_instance(i) for i in store.snapshot()]


@router.get("/instances/default", response_model=InstanceView)
async def default_instance(request: Request) -> InstanceView:
    """Return the instance used by jobs that do not name one."""
    instance = _store(request).default_instance
    if instance is None:
        raise NotFoundError(detail="No SonarQube instance is configured")
    return InstanceView.from_instance(instance)
