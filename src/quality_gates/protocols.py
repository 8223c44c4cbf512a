"""Runtime-checkable protocols for the build step's collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from src.shared.models.quality_gates import GateStatus, InstanceConfig, JobConfig

if TYPE_CHECKING:
    from src.quality_gates.services.config_store import GlobalConfigStore


@runtime_checkable
class InstanceResolver(Protocol):
    """Protocol for choosing the SonarQube instance a job runs against."""

    def resolve(
        self, store: GlobalConfigStore, job: JobConfig
    ) -> InstanceConfig | None:
        """Select the instance for *job*.

        Args:
            store: The global instance configuration.
            job: The job's quality gate settings.

        Returns:
            The matching instance, or None when nothing applies.
        """
        ...


@runtime_checkable
class GateEvaluator(Protocol):
    """Protocol for querying a project's quality gate status."""

    def evaluate(self, instance: InstanceConfig, job: JobConfig) -> GateStatus:
        """Return the gate status of *job*'s project on *instance*.

        Raises:
            GateEvaluationError: If the status cannot be determined.
        """
        ...
