"""SonarQube quality gate client.

The only part of the build step that talks to the network.  It waits for
any analysis still queued on the server's compute engine, then reads the
project's quality gate status and maps it onto :class:`GateStatus`:

    OK    -> PASSED
    WARN  -> UNSTABLE
    ERROR -> FAILED

Anything else (no gate, unknown status, HTTP errors, unreachable host,
unparseable payloads) raises :class:`GateEvaluationError`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from src.quality_gates.exceptions import GateEvaluationError
from src.shared.config import QualityGatesConfig
from src.shared.models.quality_gates import GateStatus, InstanceConfig, JobConfig

logger = logging.getLogger(__name__)

PROJECT_STATUS_PATH = "/api/qualitygates/project_status"
CE_COMPONENT_PATH = "/api/ce/component"

_STATUS_MAP: dict[str, GateStatus] = {
    "OK": GateStatus.PASSED,
    "WARN": GateStatus.UNSTABLE,
    "ERROR": GateStatus.FAILED,
}

_PENDING_TASK_STATUSES = frozenset({"PENDING", "IN_PROGRESS"})


class SonarQubeGateEvaluator:
    """Query a SonarQube server for a project's quality gate status.

    Parameters
    ----------
    client:
        Optional shared :class:`httpx.Client`.  When omitted a client is
        opened and closed for every evaluation.
    timeout:
        Per-request timeout in seconds for self-managed clients.
    max_retries:
        Retries on transport errors (connection refused, timeouts, ...).
    backoff:
        Initial delay before the first retry; doubled after every retry.
    sleep, clock:
        Injectable for tests.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        backoff: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self._client = client
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff = backoff
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, config: QualityGatesConfig) -> SonarQubeGateEvaluator:
        return cls(timeout=config.http_timeout, max_retries=config.max_retries)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(self, instance: InstanceConfig, job: JobConfig) -> GateStatus:
        """Return the quality gate status of *job*'s project on *instance*.

        Job-level ``server_url`` and ``auth_token`` take precedence over the
        instance's values.

        Raises:
            GateEvaluationError: If the status cannot be determined.
        """
        project_key = job.project_key.strip()
        if not project_key:
            raise GateEvaluationError("No SonarQube project key configured for this job")

        base_url = (job.server_url or "").rstrip("/") or instance.effective_url
        auth = self._auth(instance, job)

        with self._open_client() as client:
            self._wait_for_analysis(client, base_url, auth, instance, project_key)
            payload = self._get_json(
                client,
                base_url + PROJECT_STATUS_PATH,
                {"projectKey": project_key},
                auth,
                project_key,
            )

        status = self._parse_status(payload, project_key)
        logger.info(
            "Quality gate for %s on %s: %s",
            project_key,
            base_url,
            status.value,
            extra={"project_key": project_key, "instance_name": instance.name},
        )
        return status

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _open_client(self) -> Iterator[httpx.Client]:
        if self._client is not None:
            yield self._client
            return
        with httpx.Client(timeout=self._timeout) as client:
            yield client

    @staticmethod
    def _auth(instance: InstanceConfig, job: JobConfig) -> tuple[str, str] | None:
        # A user token goes in the basic-auth login with an empty password
        token = job.auth_token or instance.auth_token
        if token:
            return (token, "")
        if instance.username:
            return (instance.username, instance.password)
        return None

    def _wait_for_analysis(
        self,
        client: httpx.Client,
        base_url: str,
        auth: tuple[str, str] | None,
        instance: InstanceConfig,
        project_key: str,
    ) -> None:
        """Block until the compute engine has no pending task for the project."""
        deadline = self._clock() + instance.max_wait_time
        while True:
            data = self._get_json(
                client,
                base_url + CE_COMPONENT_PATH,
                {"component": project_key},
                auth,
                project_key,
            )
            if not self._analysis_pending(data):
                return
            if self._clock() >= deadline:
                raise GateEvaluationError(
                    f"Analysis of '{project_key}' still pending after "
                    f"{instance.max_wait_time}s"
                )
            logger.info(
                "Analysis of %s still pending, checking again in %ds",
                project_key,
                instance.time_to_wait,
            )
            self._sleep(instance.time_to_wait)

    @staticmethod
    def _analysis_pending(data: dict[str, Any]) -> bool:
        if data.get("queue"):
            return True
        current = data.get("current")
        return isinstance(current, dict) and current.get("status") in _PENDING_TASK_STATUSES

    def _get_json(
        self,
        client: httpx.Client,
        url: str,
        params: dict[str, str],
        auth: tuple[str, str] | None,
        project_key: str,
    ) -> dict[str, Any]:
        response = self._request(client, url, params, auth)
        code = response.status_code
        if code == 404:
            raise GateEvaluationError(f"Project '{project_key}' not found at {url}")
        if code in (401, 403):
            raise GateEvaluationError(f"SonarQube rejected the credentials (HTTP {code}) at {url}")
        if code >= 400:
            raise GateEvaluationError(f"Unexpected HTTP {code} from {url}")
        try:
            data = response.json()
        except ValueError as exc:
            raise GateEvaluationError(f"Malformed JSON response from {url}") from exc
        if not isinstance(data, dict):
            raise GateEvaluationError(f"Malformed JSON response from {url}")
        return data

    def _request(
        self,
        client: httpx.Client,
        url: str,
        params: dict[str, str],
        auth: tuple[str, str] | None,
    ) -> httpx.Response:
        delay = self._backoff
        for attempt in range(self._max_retries + 1):
            try:
                return client.get(url, params=params, auth=auth)
            except httpx.TransportError as exc:
                if attempt == self._max_retries:
                    raise GateEvaluationError(
                        f"Cannot reach SonarQube at {url}: {exc}"
                    ) from exc
                logger.warning(
                    "Request to %s failed (%s), retrying in %.1fs (%d/%d)",
                    url,
                    exc,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                self._sleep(delay)
                delay *= 2
        raise AssertionError("unreachable")

    @staticmethod
    def _parse_status(payload: dict[str, Any], project_key: str) -> GateStatus:
        project_status = payload.get("projectStatus")
        if not isinstance(project_status, dict):
            raise GateEvaluationError(
                f"Malformed quality gate response for '{project_key}'"
            )
        raw = project_status.get("status")
        if raw == "NONE":
            raise GateEvaluationError(
                f"No quality gate is assigned to project '{project_key}'"
            )
        status = _STATUS_MAP.get(raw) if isinstance(raw, str) else None
        if status is None:
            raise GateEvaluationError(
                f"Unknown quality gate status {raw!r} for '{project_key}'"
            )
        return status
