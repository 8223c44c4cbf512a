"""Shared constants used across the quality gates packages."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

# Service names
QUALITY_GATES_SERVICE_NAME: str = "quality-gates"

# SonarQube defaults (seconds)
DEFAULT_SONAR_URL: str = "http://localhost:9000"
DEFAULT_TIME_TO_WAIT: int = 10
DEFAULT_MAX_WAIT_TIME: int = 300

# Build log lines -- consumers parse these verbatim
BUILD_PASSED_LINE: str = "build passed: TRUE"
BUILD_FAILED_LINE: str = "build passed: FALSE"
INSTANCE_NO_LONGER_EXISTS: str = "'{name}' no longer exists."
DEFAULT_CONFIGURATION_WARNING: str = (
    "WARNING: no SonarQube instance name was given for this job, "
    "the default instance configuration is used."
)

# CLI exit codes per build result
EXIT_SUCCESS: int = 0
EXIT_FAILURE: int = 1
EXIT_UNSTABLE: int = 2
