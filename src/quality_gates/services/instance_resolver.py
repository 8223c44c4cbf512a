"""Chooses which configured SonarQube instance a job runs against."""

from __future__ import annotations

from src.quality_gates.services.config_store import GlobalConfigStore, select_default
from src.shared.models.quality_gates import InstanceConfig, JobConfig


class SonarInstanceResolver:
    """Resolve a job's instance name against one snapshot of the store.

    A non-empty name must match exactly (case-sensitive); when it does not,
    the job refers to an instance that was renamed or removed and ``None``
    is returned.  An empty name selects the store's designated default.
    """

    def resolve(
        self, store: GlobalConfigStore, job: JobConfig
    ) -> InstanceConfig | None:
        instances = store.snapshot()
        name = job.sonar_instance_name
        if not name:
            return select_default(instances)
        for instance in instances:
            if instance.name == name:
                return instance
        return None
