"""Configuration and environment handling for mlflow-cli."""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mlflow_cli.exceptions import ConfigError

__all__ = [
    "ClientConfig",
    "VALID_STEP_MODES",
    "VALID_TIME_ALIGNMENTS",
    "VALID_TIME_RESOLUTIONS",
]

VALID_TIME_RESOLUTIONS = ("1m", "5m", "1h")
VALID_TIME_ALIGNMENTS = ("floor", "ceil", "round")
VALID_STEP_MODES = ("auto", "timestamp", "sequence")

# Databricks domain suffixes for URL detection
_DATABRICKS_DOMAINS = (
    ".cloud.databricks.com",
    ".azuredatabricks.net",
    ".gcp.databricks.com",
)

# Environment variable bound to each field
_ENV_VARS = {
    "tracking_uri": "MLFLOW_TRACKING_URI",
    "experiment_id": "MLFLOW_EXPERIMENT_ID",
    "time_resolution": "MLFLOW_TIME_RESOLUTION",
    "time_alignment": "MLFLOW_TIME_ALIGNMENT",
    "step_mode": "MLFLOW_STEP_MODE",
    "databricks_host": "DATABRICKS_HOST",
    "databricks_token": "DATABRICKS_TOKEN",
    "http_request_timeout": "MLFLOW_HTTP_REQUEST_TIMEOUT",
    "artifact_upload_workers": "MLFLOW_ARTIFACT_UPLOAD_WORKERS",
}


class ClientConfig(BaseModel):
    """Client configuration threaded through every mlflow-cli operation.

    Built once per invocation (usually via :meth:`from_env`) and passed
    explicitly to the tracking client, credential broker, uploaders and
    router. Nothing reads the environment after construction.
    """

    model_config = ConfigDict(frozen=True)

    tracking_uri: str = Field(default="http://localhost:5000", description="MLflow tracking URI")
    experiment_id: str | None = Field(default=None, description="Default experiment ID for new runs")
    time_resolution: str = Field(default="1m", description="Metric time resolution (1m, 5m, 1h)")
    time_alignment: str = Field(default="floor", description="Metric time alignment (floor, ceil, round)")
    step_mode: str = Field(default="auto", description="Metric step mode (auto, timestamp, sequence)")
    databricks_host: str | None = Field(default=None, description="Databricks workspace host")
    databricks_token: str | None = Field(default=None, description="Databricks personal access token")
    http_request_timeout: float = Field(
        default=120.0,
        description="Timeout in seconds applied to every HTTP request",
    )
    artifact_upload_workers: int = Field(
        default=4,
        description="Maximum number of files uploaded concurrently",
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Create ClientConfig from environment variables.

        Keyword overrides (typically command line flags) take precedence over
        the environment. Overrides that are None or empty strings are ignored.

        Environment variables:
        - MLFLOW_TRACKING_URI: Tracking URI (default: http://localhost:5000)
        - MLFLOW_EXPERIMENT_ID: Default experiment ID
        - MLFLOW_TIME_RESOLUTION: Metric time resolution (default: 1m)
        - MLFLOW_TIME_ALIGNMENT: Metric time alignment (default: floor)
        - MLFLOW_STEP_MODE: Metric step mode (default: auto)
        - DATABRICKS_HOST: Databricks workspace host
        - DATABRICKS_TOKEN: Databricks personal access token
        - MLFLOW_HTTP_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 120)
        - MLFLOW_ARTIFACT_UPLOAD_WORKERS: Concurrent artifact uploads (default: 4)

        Raises:
            ConfigError: If a numeric environment variable cannot be parsed
        """
        values: dict[str, Any] = {}
        for field_name, env_var in _ENV_VARS.items():
            env_value = os.environ.get(env_var)
            if env_value:
                values[field_name] = env_value

        for field_name, value in overrides.items():
            if field_name not in cls.model_fields:
                raise TypeError(f"Unknown configuration field: {field_name}")
            if value is not None and value != "":
                values[field_name] = value

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigError(f"invalid configuration: {e}") from e

    def validate_settings(self) -> None:
        """Validate the configuration.

        Raises:
            ConfigError: If the tracking URI is missing or a time setting is
                not one of the supported values.
        """
        if not self.tracking_uri:
            raise ConfigError("tracking URI is required")

        if self.time_resolution not in VALID_TIME_RESOLUTIONS:
            raise ConfigError(f"invalid time resolution: {self.time_resolution} (valid: {', '.join(VALID_TIME_RESOLUTIONS)})")

        if self.time_alignment not in VALID_TIME_ALIGNMENTS:
            raise ConfigError(f"invalid time alignment: {self.time_alignment} (valid: {', '.join(VALID_TIME_ALIGNMENTS)})")

        if self.step_mode not in VALID_STEP_MODES:
            raise ConfigError(f"invalid step mode: {self.step_mode} (valid: {', '.join(VALID_STEP_MODES)})")

        if self.http_request_timeout <= 0:
            raise ConfigError("HTTP request timeout must be positive")

        if self.artifact_upload_workers < 1:
            raise ConfigError("artifact upload workers must be at least 1")

    def is_databricks(self) -> bool:
        """Check if the tracking URI points to a Databricks workspace."""
        if self.tracking_uri == "databricks":
            return True

        if self.tracking_uri.startswith("databricks://"):
            return True

        if self.tracking_uri.startswith("https://"):
            host = self.tracking_uri[len("https://") :].split("/", 1)[0]
            return host.endswith(_DATABRICKS_DOMAINS)

        return False

    def databricks_profile(self) -> str | None:
        """Extract the profile name from a ``databricks://{profile}`` URI."""
        if not self.tracking_uri.startswith("databricks://"):
            return None

        profile = self.tracking_uri[len("databricks://") :].split("/", 1)[0]
        return profile or None

    def resolve_host_and_token(self) -> tuple[str, str | None]:
        """Resolve the Databricks workspace host and token.

        Resolution priority for the host:
        1. The tracking URI itself when it is a workspace URL
        2. DATABRICKS_HOST (for ``databricks`` and ``databricks://{profile}``)
        3. The ``host`` entry of the profile in ~/.databrickscfg

        An explicit DATABRICKS_TOKEN overrides the profile's token.

        Returns:
            Tuple of (host, token). The token is None when no credential
            source is configured.

        Raises:
            ConfigError: If no host can be resolved
        """
        host: str | None = None
        token = self.databricks_token

        profile = self.databricks_profile()
        if self.tracking_uri == "databricks" or profile is not None:
            host = self.databricks_host
            section = _read_databricks_profile(profile or "DEFAULT")
            if section:
                host = host or section.get("host")
                token = token or section.get("token")
        else:
            host = self.tracking_uri

        if not host:
            raise ConfigError(
                "Databricks host or profile is required when using Databricks MLflow. "
                "Set DATABRICKS_HOST environment variable, use a full Databricks URL as tracking URI, "
                "or specify a profile with databricks://{profile}"
            )

        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return host.rstrip("/"), token or None


def _databricks_config_file() -> Path:
    """Get the location of the Databricks CLI configuration file."""
    config_file = os.environ.get("DATABRICKS_CONFIG_FILE")
    if config_file:
        return Path(config_file).expanduser()
    return Path.home() / ".databrickscfg"


def _read_databricks_profile(profile: str) -> dict[str, str] | None:
    """Read one profile section from the Databricks CLI configuration file.

    Args:
        profile: Profile name (section header)

    Returns:
        Mapping of the profile's keys, or None if the file or profile is absent.

    Raises:
        ConfigError: If the configuration file exists but cannot be parsed
    """
    config_path = _databricks_config_file()
    if not config_path.is_file():
        return None

    parser = configparser.ConfigParser()
    try:
        parser.read(config_path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"failed to read Databricks config file {config_path}: {e}") from e

    if profile == "DEFAULT":
        defaults = dict(parser.defaults())
        return defaults or None
    if not parser.has_section(profile):
        return None
    return dict(parser.items(profile))
