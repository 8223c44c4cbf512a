"""Custom exceptions for the quality gates build step."""

from __future__ import annotations

from src.shared.constants import INSTANCE_NO_LONGER_EXISTS


class QualityGatesError(Exception):
    """Base exception for all quality gates errors."""

    pass


class ConfigurationDriftError(QualityGatesError):
    """Raised when a job references an instance the global config no longer has."""

    def __init__(self, instance_name: str) -> None:
        self.instance_name = instance_name
        super().__init__(INSTANCE_NO_LONGER_EXISTS.format(name=instance_name))


class GateEvaluationError(QualityGatesError):
    """Raised when the quality gate status cannot be obtained.

    Covers unreachable servers, malformed responses, rejected credentials
    and projects or gates that do not exist.
    """

    pass


class StoreError(QualityGatesError):
    """Raised when the persisted instance store cannot be read."""

    pass


class ConfigFileError(QualityGatesError):
    """Raised when a YAML configuration file cannot be used."""

    pass
