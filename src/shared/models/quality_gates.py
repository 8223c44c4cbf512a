"""Quality gates Pydantic v2 data models."""
from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from string import Template

from pydantic import BaseModel, Field

from src.shared.constants import (
    DEFAULT_MAX_WAIT_TIME,
    DEFAULT_SONAR_URL,
    DEFAULT_TIME_TO_WAIT,
)


class GateStatus(str, Enum):
    """Verdict of a project's quality gate on a SonarQube instance."""
    PASSED = "passed"
    FAILED = "failed"
    UNSTABLE = "unstable"


class BuildResult(str, Enum):
    """Terminal outcome reported back to the build host."""
    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"


class InstanceConfig(BaseModel):
    """A configured SonarQube server endpoint.

    An empty ``name`` denotes the unnamed instance that jobs without an
    explicit instance name fall back to.
    """
    name: str = ""
    server_url: str = ""
    auth_token: str = Field(default="", repr=False)
    username: str = ""
    password: str = Field(default="", repr=False)
    is_default: bool = False
    time_to_wait: int = Field(default=DEFAULT_TIME_TO_WAIT, ge=0)
    max_wait_time: int = Field(default=DEFAULT_MAX_WAIT_TIME, ge=0)

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def effective_url(self) -> str:
        return self.server_url.rstrip("/") or DEFAULT_SONAR_URL


class InstanceView(BaseModel):
    """Instance as exposed by the admin API, without credentials."""
    name: str
    server_url: str
    is_default: bool
    has_credentials: bool

    @classmethod
    def from_instance(cls, instance: InstanceConfig) -> InstanceView:
        return cls(
            name=instance.name,
            server_url=instance.effective_url,
            is_default=instance.is_default,
            has_credentials=bool(instance.auth_token or instance.username),
        )


class JobConfig(BaseModel):
    """Per-job quality gate settings.

    ``server_url`` and ``auth_token`` override the resolved instance's
    values for this job only.
    """
    sonar_instance_name: str = ""
    project_key: str = ""
    server_url: str | None = None
    auth_token: str | None = Field(default=None, repr=False)

    model_config = {"extra": "ignore"}

    def expand(self, env: Mapping[str, str]) -> JobConfig:
        """Return a copy with ``${VAR}`` references in the project key expanded.

        Unknown variables are left untouched.
        """
        expanded = Template(self.project_key).safe_substitute(env)
        if expanded == self.project_key:
            return self
        return self.model_copy(update={"project_key": expanded})


class BuildOutcome(BaseModel):
    """Result of one quality gate build step, with the lines it logged."""
    result: BuildResult
    log_lines: list[str] = Field(default_factory=list)
    instance_name: str | None = None

    @property
    def message(self) -> str:
        return "\n".join(self.log_lines)


class GateCheckRequest(BaseModel):
    """Request to run the build step for one job."""
    job: JobConfig
    env: dict[str, str] = Field(default_factory=dict)
