"""Shared test fixtures for the quality gates test suite."""
from __future__ import annotations

from pathlib import Path

import pytest

from src.quality_gates.exceptions import GateEvaluationError
from src.quality_gates.services.config_store import GlobalConfigStore
from src.shared.models.quality_gates import GateStatus, InstanceConfig, JobConfig

TEST_NAME = "TestName"


class FixedEvaluator:
    """Gate evaluator double returning a fixed status or raising an error."""

    def __init__(
        self,
        status: GateStatus = GateStatus.PASSED,
        error: Exception | None = None,
    ) -> None:
        self.status = status
        self.error = error
        self.calls: list[tuple[InstanceConfig, JobConfig]] = []

    def evaluate(self, instance: InstanceConfig, job: JobConfig) -> GateStatus:
        self.calls.append((instance, job))
        if self.error is not None:
            raise self.error
        return self.status


@pytest.fixture
def named_instance() -> InstanceConfig:
    return InstanceConfig(
        name=TEST_NAME,
        server_url="http://sonar.test:9000",
        auth_token="squ_token",
    )


@pytest.fixture
def unnamed_instance() -> InstanceConfig:
    return InstanceConfig(name="", server_url="http://default.test:9000")


@pytest.fixture
def named_store(named_instance: InstanceConfig) -> GlobalConfigStore:
    return GlobalConfigStore([named_instance])


@pytest.fixture
def unnamed_store(unnamed_instance: InstanceConfig) -> GlobalConfigStore:
    return GlobalConfigStore([unnamed_instance])


@pytest.fixture
def named_job() -> JobConfig:
    return JobConfig(sonar_instance_name=TEST_NAME, project_key="projectKey")


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Provide a temporary instance store path."""
    return tmp_path / "instances.json"


@pytest.fixture
def evaluator_error() -> GateEvaluationError:
    return GateEvaluationError("TestException")
