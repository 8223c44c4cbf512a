"""YAML loaders for job and instance configuration files.

Job file::

    sonar_instance_name: main        # empty or omitted -> default instance
    project_key: com.example:${BRANCH}
    auth_token: squ_...              # optional per-job override

Instance file::

    instances:
      - name: main
        server_url: https://sonar.example.com
        auth_token: squ_...
        is_default: true
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.quality_gates.exceptions import ConfigFileError
from src.shared.models.quality_gates import InstanceConfig, JobConfig


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigFileError(f"Invalid YAML in {path}: {exc}") from exc


def _pick(data: dict[str, Any], cls: type[BaseModel]) -> dict[str, Any]:
    """Filter *data* to only keys accepted by *cls*."""
    return {k: v for k, v in data.items() if k in cls.model_fields}


def load_job_config(path: Path | str | None = None) -> JobConfig:
    """Load a job's quality gate settings from a YAML file.

    Unknown keys are silently ignored.  A missing path or file yields the
    defaults (default instance, empty project key).

    Raises:
        ConfigFileError: If the file is not a YAML mapping of valid settings.
    """
    if path is None:
        return JobConfig()

    path = Path(path)
    if not path.exists():
        return JobConfig()

    raw = _read_yaml(path) or {}
    if not isinstance(raw, dict):
        raise ConfigFileError(f"Job configuration in {path} must be a mapping")
    # Values such as numeric project keys arrive as non-strings
    data = {k: "" if v is None else str(v) for k, v in _pick(raw, JobConfig).items()}
    return JobConfig(**data)


def load_instances(path: Path | str) -> list[InstanceConfig]:
    """Load SonarQube instance definitions from a YAML file.

    Accepts either a top-level ``instances`` list or a bare list.

    Raises:
        ConfigFileError: If the file is missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigFileError(f"Instance file not found: {path}")

    raw = _read_yaml(path) or []
    if isinstance(raw, dict):
        raw = raw.get("instances") or []
    if not isinstance(raw, list):
        raise ConfigFileError(f"'instances' must be a list in {path}")

    instances: list[InstanceConfig] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigFileError(f"Instance #{index} in {path} must be a mapping")
        try:
            instances.append(InstanceConfig(**_pick(item, InstanceConfig)))
        except PydanticValidationError as exc:
            raise ConfigFileError(f"Invalid instance #{index} in {path}: {exc}") from exc
    return instances
