"""HTTP client for the MLflow tracking REST API."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

import requests

from mlflow_cli.config import ClientConfig
from mlflow_cli.exceptions import AuthError, ConfigError, TrackingError
from mlflow_cli.logger import logger
from mlflow_cli.models.metrics import NormalizedMetric
from mlflow_cli.models.run import RunConfig, RunInfo, RunStatus
from mlflow_cli.utils.timestamp import parse_to_ms, utc_now

_API_PREFIX = "/api/2.0/mlflow"

# Maximum number of metrics accepted by a single log-batch request
MAX_METRICS_PER_BATCH = 1000

_RUN_NAME_TAG = "mlflow.runName"
_NOTE_TAG = "mlflow.note.content"


def _from_ms(value: Any) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


class TrackingClient:
    """HTTP client for communicating with an MLflow tracking server.

    Works against both a self-hosted tracking server and a Databricks
    workspace. For Databricks the session carries a bearer token; regular
    servers are accessed without authentication.
    """

    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        """Initialize tracking client.

        Args:
            config: Validated client configuration
            session: Optional pre-built session (mainly for tests)

        Raises:
            ConfigError: If the configuration is invalid
        """
        config.validate_settings()
        self.config = config
        self.timeout = config.http_request_timeout
        self.session = session or requests.Session()
        self.token: str | None = None

        if config.is_databricks():
            host, token = config.resolve_host_and_token()
            self.base_url = host
            self.token = token
            if token:
                self.session.headers.update({"Authorization": f"Bearer {token}"})
        else:
            if not config.tracking_uri.startswith(("http://", "https://")):
                raise ConfigError(f"tracking URI must be an http(s) URL: {config.tracking_uri}")
            self.base_url = config.tracking_uri.rstrip("/")

    @property
    def is_authenticated(self) -> bool:
        """Whether requests carry a credential the workspace can verify."""
        return self.token is not None

    def require_auth(self, operation: str) -> None:
        """Fail closed when an operation needs a credential source.

        Raises:
            AuthError: If the client is not connected to a Databricks
                workspace or has no token
        """
        if not self.config.is_databricks():
            raise AuthError(f"{operation} requires a Databricks workspace; non-Databricks MLflow servers are not supported")
        if not self.is_authenticated:
            raise AuthError(f"{operation} requires credentials. Set DATABRICKS_TOKEN or configure a profile in ~/.databrickscfg")

    def url(self, path: str) -> str:
        """Build an absolute URL for an API path."""
        return f"{self.base_url}{path}"

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request to an MLflow REST endpoint and decode the response.

        Raises:
            TrackingError: If the request fails or returns a non-2xx status
        """
        url = self.url(f"{_API_PREFIX}/{endpoint}")
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TrackingError(f"{endpoint} request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise TrackingError(f"{endpoint} request failed", status_code=response.status_code, body=response.text)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise TrackingError(f"{endpoint} returned invalid JSON: {e}") from e

    def post(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST a JSON payload to an MLflow REST endpoint."""
        return self._request("POST", endpoint, json=payload)

    # ---- Runs ---------------------------------------------------------------

    def create_run(self, run_config: RunConfig) -> RunInfo:
        """Create a new run.

        Args:
            run_config: Run parameters. The name defaults to a timestamp-based
                name; name and description are also recorded as MLflow tags.

        Returns:
            Information about the created run.

        Raises:
            TrackingError: If the request fails
        """
        start_time = utc_now()
        run_name = run_config.run_name or "run-" + start_time.astimezone().strftime("%Y-%m-%d-%H-%M-%S")

        tags = [{"key": key, "value": value} for key, value in run_config.tags.items()]
        tags.append({"key": _RUN_NAME_TAG, "value": run_name})
        if run_config.description is not None:
            tags.append({"key": _NOTE_TAG, "value": run_config.description})

        response = self.post(
            "runs/create",
            {
                "experiment_id": run_config.experiment_id,
                "run_name": run_name,
                "start_time": parse_to_ms(start_time),
                "tags": tags,
            },
        )
        run_id = response.get("run", {}).get("info", {}).get("run_id")
        if not run_id:
            raise TrackingError("runs/create response did not contain a run ID")

        return RunInfo(
            run_id=run_id,
            experiment_id=run_config.experiment_id,
            run_name=run_name,
            status=RunStatus.RUNNING.value,
            start_time=start_time,
            artifact_uri=response["run"]["info"].get("artifact_uri", ""),
            tags=dict(run_config.tags),
            description=run_config.description or "",
        )

    def update_run(self, run_id: str, status: RunStatus) -> None:
        """Update the status of a run, setting the end time for terminal statuses.

        Raises:
            TrackingError: If the request fails
        """
        payload: dict[str, Any] = {"run_id": run_id, "status": status.value}
        if status.is_terminal:
            payload["end_time"] = parse_to_ms(utc_now())
        self.post("runs/update", payload)

    def get_run(self, run_id: str) -> RunInfo:
        """Fetch run information.

        Raises:
            TrackingError: If the request fails
        """
        response = self._request("GET", "runs/get", params={"run_id": run_id})
        run = response.get("run", {})
        info = run.get("info", {})
        tags = {tag["key"]: tag.get("value", "") for tag in run.get("data", {}).get("tags", [])}

        return RunInfo(
            run_id=info.get("run_id", run_id),
            experiment_id=info.get("experiment_id", ""),
            run_name=info.get("run_name") or tags.get(_RUN_NAME_TAG, ""),
            status=info.get("status", RunStatus.RUNNING.value),
            start_time=_from_ms(info.get("start_time")),
            end_time=_from_ms(info.get("end_time")),
            artifact_uri=info.get("artifact_uri", ""),
            tags=tags,
            description=tags.get(_NOTE_TAG, ""),
        )

    def get_artifact_uri(self, run_id: str) -> str:
        """Get the artifact root URI of a run.

        Raises:
            TrackingError: If the request fails or the run has no artifact URI
        """
        artifact_uri = self.get_run(run_id).artifact_uri
        if not artifact_uri:
            raise TrackingError(f"artifact URI not found for run {run_id}")
        return artifact_uri

    # ---- Params -------------------------------------------------------------

    def log_param(self, run_id: str, key: str, value: str) -> None:
        """Log a single parameter.

        Raises:
            TrackingError: If the request fails
        """
        self.post("runs/log-parameter", {"run_id": run_id, "key": key, "value": value})

    def log_params(self, run_id: str, params: Mapping[str, str]) -> None:
        """Log several parameters, one request each."""
        for key, value in params.items():
            self.log_param(run_id, key, value)

    # ---- Metrics ------------------------------------------------------------

    def log_metric(
        self,
        run_id: str,
        key: str,
        value: float,
        timestamp: datetime | None = None,
        step: int | None = None,
    ) -> None:
        """Log a single metric.

        Args:
            run_id: Run ID
            key: Metric name
            value: Metric value
            timestamp: Observation time. Defaults to now.
            step: Step number. Defaults to 0.

        Raises:
            TrackingError: If the request fails
        """
        payload = {
            "run_id": run_id,
            "key": key,
            "value": value,
            "timestamp": parse_to_ms(timestamp or utc_now()),
            "step": step or 0,
        }
        self.post("runs/log-metric", payload)

    def log_batch_metrics(self, run_id: str, metrics: Iterable[NormalizedMetric]) -> int:
        """Log normalized metrics through the batch API.

        Metrics are sent in chunks of at most MAX_METRICS_PER_BATCH.

        Returns:
            Number of metrics sent.

        Raises:
            TrackingError: If any batch request fails
        """
        payload_metrics = [
            {"key": m.key, "value": m.value, "timestamp": m.timestamp_ms, "step": m.step}
            for m in metrics
        ]
        for start in range(0, len(payload_metrics), MAX_METRICS_PER_BATCH):
            chunk = payload_metrics[start : start + MAX_METRICS_PER_BATCH]
            self.post("runs/log-batch", {"run_id": run_id, "metrics": chunk})
            logger.debug(f"Logged batch of {len(chunk)} metrics")
        return len(payload_metrics)
