"""Business logic services for the quality gates build step."""

from src.quality_gates.services.build_step import BuildStep
from src.quality_gates.services.config_store import GlobalConfigStore
from src.quality_gates.services.gate_evaluator import SonarQubeGateEvaluator
from src.quality_gates.services.instance_resolver import SonarInstanceResolver

__all__ = [
    "BuildStep",
    "GlobalConfigStore",
    "SonarQubeGateEvaluator",
    "SonarInstanceResolver",
]
