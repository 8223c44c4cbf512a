"""Gate check endpoint: runs the build step for a posted job."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request

from src.shared.models.quality_gates import BuildOutcome, GateCheckRequest

router = APIRouter(prefix="/api", tags=["gate-checks"])


@router.post("/gate-checks", response_model=BuildOutcome)
async def run_gate_check(body: GateCheckRequest, request: Request) -> BuildOutcome:
    """Evaluate a job's quality gate and return the resulting build outcome.

    The outcome (including FAILURE) is reported in the body; the request
    itself succeeds.
    """
    step = request.app.state.build_step
    return await asyncio.to_thread(
        step.execute, request.app.state.store, body.job, body.env
    )
