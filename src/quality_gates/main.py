"""Quality Gates admin service FastAPI application."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.quality_gates.services.build_step import BuildStep
from src.quality_gates.services.config_store import GlobalConfigStore
from src.quality_gates.services.gate_evaluator import SonarQubeGateEvaluator
from src.shared.config import QualityGatesConfig
from src.shared.constants import QUALITY_GATES_SERVICE_NAME, VERSION
from src.shared.errors import register_exception_handlers
from src.shared.logging import TraceIDMiddleware, setup_logging

config = QualityGatesConfig()
logger = setup_logging(QUALITY_GATES_SERVICE_NAME, config.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - load the instance store and build step."""
    app.state.start_time = time.time()
    app.state.store = GlobalConfigStore.load(config.store_path)
    app.state.build_step = BuildStep(
        evaluator=SonarQubeGateEvaluator.from_config(config)
    )

    logger.info(
        "Service started: name=%s version=%s store=%s instances=%d",
        QUALITY_GATES_SERVICE_NAME, VERSION, config.store_path, len(app.state.store),
    )
    yield

    logger.info("Service stopped: name=%s", QUALITY_GATES_SERVICE_NAME)


app = FastAPI(
    title="Quality Gates",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TraceIDMiddleware)
register_exception_handlers(app)

# Register all routers
from src.quality_gates.routers.health import router as health_router
from src.quality_gates.routers.instances import router as instances_router
from src.quality_gates.routers.gate_checks import router as gate_checks_router

app.include_router(health_router)
app.include_router(instances_router)
app.include_router(gate_checks_router)
