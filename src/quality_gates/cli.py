"""Command line entry point for running the quality gate in a CI job.

Exit codes follow the build result so CI systems can act on them:
``0`` SUCCESS, ``1`` FAILURE, ``2`` UNSTABLE.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import typer

from src.quality_gates.config import load_instances, load_job_config
from src.quality_gates.display import (
    print_error_panel,
    print_instances_table,
    print_log_line,
    print_outcome,
)
from src.quality_gates.exceptions import ConfigurationDriftError, QualityGatesError
from src.quality_gates.services.build_step import BuildStep
from src.quality_gates.services.config_store import GlobalConfigStore
from src.quality_gates.services.gate_evaluator import SonarQubeGateEvaluator
from src.quality_gates.services.instance_resolver import SonarInstanceResolver
from src.shared.config import QualityGatesConfig
from src.shared.constants import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    EXIT_UNSTABLE,
    QUALITY_GATES_SERVICE_NAME,
)
from src.shared.logging import setup_logging
from src.shared.models.quality_gates import BuildResult, JobConfig

app = typer.Typer(
    name="quality-gates",
    help="Fail, pass or destabilise a build on its SonarQube quality gate.",
    no_args_is_help=True,
)

_EXIT_CODES: dict[BuildResult, int] = {
    BuildResult.SUCCESS: EXIT_SUCCESS,
    BuildResult.UNSTABLE: EXIT_UNSTABLE,
    BuildResult.FAILURE: EXIT_FAILURE,
}

_INSTANCES_HELP = "YAML file with SonarQube instances (defaults to the store at STORE_PATH)."


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Emit debug logs on stderr."),
) -> None:
    """Quality Gates command line interface."""
    if verbose:
        setup_logging(QUALITY_GATES_SERVICE_NAME, "DEBUG")


def _load_store(instances_file: Path | None) -> GlobalConfigStore:
    if instances_file is not None:
        return GlobalConfigStore(load_instances(instances_file))
    return GlobalConfigStore.load(QualityGatesConfig().store_path)


def _load_job(
    job_file: Path | None, instance_name: str | None, project_key: str | None
) -> JobConfig:
    job = load_job_config(job_file)
    overrides = {
        k: v
        for k, v in (("sonar_instance_name", instance_name), ("project_key", project_key))
        if v is not None
    }
    return job.model_copy(update=overrides) if overrides else job


@app.command()
def check(
    job_file: Optional[Path] = typer.Option(
        None, "--job", "-j", exists=True, dir_okay=False, help="Job YAML file."
    ),
    instances_file: Optional[Path] = typer.Option(
        None, "--instances", "-i", exists=True, dir_okay=False, help=_INSTANCES_HELP
    ),
    instance_name: Optional[str] = typer.Option(
        None, "--instance", help="SonarQube instance name (overrides the job file)."
    ),
    project_key: Optional[str] = typer.Option(
        None, "--project-key", "-k", help="Project key (overrides the job file)."
    ),
    expand_env: bool = typer.Option(
        True, "--expand-env/--no-expand-env", help="Expand ${VAR} in the project key."
    ),
) -> None:
    """Evaluate the quality gate and exit with the build result."""
    try:
        store = _load_store(instances_file)
        job = _load_job(job_file, instance_name, project_key)
    except QualityGatesError as exc:
        print_error_panel(exc)
        raise typer.Exit(code=EXIT_FAILURE)

    if expand_env:
        job = job.expand(os.environ)

    step = BuildStep(evaluator=SonarQubeGateEvaluator.from_config(QualityGatesConfig()))
    outcome = step.execute(store, job, listener=print_log_line)
    print_outcome(outcome, job.project_key)
    raise typer.Exit(code=_EXIT_CODES[outcome.result])


@app.command()
def validate(
    job_file: Optional[Path] = typer.Option(
        None, "--job", "-j", exists=True, dir_okay=False, help="Job YAML file."
    ),
    instances_file: Optional[Path] = typer.Option(
        None, "--instances", "-i", exists=True, dir_okay=False, help=_INSTANCES_HELP
    ),
    instance_name: Optional[str] = typer.Option(
        None, "--instance", help="SonarQube instance name (overrides the job file)."
    ),
) -> None:
    """Check that the job's instance still exists, without contacting SonarQube."""
    try:
        store = _load_store(instances_file)
        job = _load_job(job_file, instance_name, None)
        instance = SonarInstanceResolver().resolve(store, job)
        if instance is None:
            raise ConfigurationDriftError(job.sonar_instance_name)
    except ConfigurationDriftError as exc:
        print_log_line(str(exc))
        raise typer.Exit(code=EXIT_FAILURE)
    except QualityGatesError as exc:
        print_error_panel(exc)
        raise typer.Exit(code=EXIT_FAILURE)

    print_log_line(
        f"Job resolves to instance '{instance.name}' at {instance.effective_url}"
    )


@app.command()
def instances(
    instances_file: Optional[Path] = typer.Option(
        None, "--instances", "-i", exists=True, dir_okay=False, help=_INSTANCES_HELP
    ),
) -> None:
    """List configured SonarQube instances."""
    try:
        store = _load_store(instances_file)
    except QualityGatesError as exc:
        print_error_panel(exc)
        raise typer.Exit(code=EXIT_FAILURE)
    print_instances_table(store.snapshot(), default=store.default_instance)


if __name__ == "__main__":
    app()
