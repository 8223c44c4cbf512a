"""Quality gate build step.

Runs once per build: resolves the job's SonarQube instance, asks the
evaluator for the project's gate status and maps it onto a build result.

    resolve --NotFound--------------------------------> FAILURE
       |
       +--> evaluate --error--------------------------> FAILURE
                |--PASSED   "build passed: TRUE"  ---> SUCCESS
                |--UNSTABLE "build passed: TRUE"  ---> UNSTABLE
                +--FAILED   "build passed: FALSE" ---> FAILURE

The step never raises; every failure ends as a FAILURE outcome with one
explanatory log line.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from src.quality_gates.exceptions import ConfigurationDriftError
from src.quality_gates.protocols import GateEvaluator, InstanceResolver
from src.quality_gates.services.config_store import GlobalConfigStore
from src.quality_gates.services.instance_resolver import SonarInstanceResolver
from src.quality_gates.state_machine import TERMINAL_STATES, create_build_machine
from src.shared.constants import (
    BUILD_FAILED_LINE,
    BUILD_PASSED_LINE,
    DEFAULT_CONFIGURATION_WARNING,
)
from src.shared.models.quality_gates import (
    BuildOutcome,
    BuildResult,
    GateStatus,
    InstanceConfig,
    JobConfig,
)

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]

_STATE_RESULTS: dict[str, BuildResult] = {
    "success": BuildResult.SUCCESS,
    "unstable": BuildResult.UNSTABLE,
    "failure": BuildResult.FAILURE,
}

# status -> (trigger, log line, log level)
_STATUS_TRANSITIONS: dict[GateStatus, tuple[str, str, int]] = {
    GateStatus.PASSED: ("gate_passed", BUILD_PASSED_LINE, logging.INFO),
    GateStatus.UNSTABLE: ("gate_unstable", BUILD_PASSED_LINE, logging.WARNING),
    GateStatus.FAILED: ("gate_failed", BUILD_FAILED_LINE, logging.ERROR),
}


def _emit(listener: Listener | None, line: str) -> None:
    if listener is None:
        return
    try:
        listener(line)
    except Exception as exc:
        logger.warning("Build log listener failed: %s", exc)


class _BuildRun:
    """State-machine model for a single build invocation."""

    state: str

    def __init__(self, job: JobConfig, listener: Listener | None = None) -> None:
        self.job = job
        self.instance: InstanceConfig | None = None
        self.log_lines: list[str] = []
        self._listener = listener
        create_build_machine(self)

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def log(self, line: str, level: int = logging.INFO) -> None:
        self.log_lines.append(line)
        logger.log(level, line, extra={"project_key": self.job.project_key})
        _emit(self._listener, line)


class BuildStep:
    """Gate a build on its project's SonarQube quality gate.

    Collaborators are injected so the step itself holds no per-build state
    and can serve concurrent builds.

    Usage
    -----
    ::

        step = BuildStep(evaluator=SonarQubeGateEvaluator())
        outcome = step.execute(store, JobConfig(project_key="my:project"))
        if outcome.result is BuildResult.FAILURE:
            ...
    """

    def __init__(
        self,
        evaluator: GateEvaluator,
        resolver: InstanceResolver | None = None,
    ) -> None:
        self._evaluator = evaluator
        self._resolver = resolver or SonarInstanceResolver()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_instance(self, store: GlobalConfigStore, job: JobConfig) -> InstanceConfig:
        """Resolve *job*'s instance or raise.

        Raises:
            ConfigurationDriftError: If no configured instance applies.
        """
        instance = self._resolver.resolve(store, job)
        if instance is None:
            raise ConfigurationDriftError(job.sonar_instance_name)
        return instance

    def prebuild(
        self,
        store: GlobalConfigStore,
        job: JobConfig,
        listener: Listener | None = None,
    ) -> bool:
        """Check before the build runs that the job's instance still exists."""
        try:
            self.resolve_instance(store, job)
        except ConfigurationDriftError as exc:
            logger.error("%s", exc, extra={"project_key": job.project_key})
            _emit(listener, str(exc))
            return False
        return True

    def execute(
        self,
        store: GlobalConfigStore,
        job: JobConfig,
        env: Mapping[str, str] | None = None,
        listener: Listener | None = None,
    ) -> BuildOutcome:
        """Run the quality gate check for one build.

        Args:
            store: Global instance configuration; read once per call.
            job: The job's quality gate settings.
            env: Build environment used to expand ``${VAR}`` in the project key.
            listener: Receives every build log line as it is written.

        Returns:
            The build result together with the lines that were logged.
        """
        run = _BuildRun(job.expand(env) if env else job, listener)
        try:
            self._run(run, store)
        except Exception as exc:
            logger.exception("Quality gate build step aborted")
            if not run.finished:
                run.log(f"{type(exc).__name__}: {exc}", logging.ERROR)
                run.evaluation_error()

        result = _STATE_RESULTS[run.state]
        logger.info(
            "Quality gate build step finished: %s",
            result.value,
            extra={"project_key": run.job.project_key, "build_result": result.value},
        )
        return BuildOutcome(
            result=result,
            log_lines=run.log_lines,
            instance_name=run.instance.name if run.instance is not None else None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, run: _BuildRun, store: GlobalConfigStore) -> None:
        try:
            instance = self.resolve_instance(store, run.job)
        except ConfigurationDriftError as exc:
            run.log(str(exc), logging.ERROR)
            if not run.job.sonar_instance_name:
                logger.error("No SonarQube instance is configured")
            run.instance_missing()
            return

        run.instance = instance
        run.instance_found()
        if not instance.name:
            run.log(DEFAULT_CONFIGURATION_WARNING, logging.WARNING)

        try:
            status = self._evaluator.evaluate(instance, run.job)
            trigger, line, level = _STATUS_TRANSITIONS[status]
        except Exception as exc:
            run.log(f"{type(exc).__name__}: {exc}", logging.ERROR)
            run.evaluation_error()
            return

        run.log(line, level)
        getattr(run, trigger)()
