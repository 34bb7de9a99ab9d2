"""Utility modules for mlflow-cli."""

from mlflow_cli.utils.file import upload_body
from mlflow_cli.utils.timestamp import parse_to_datetime, parse_to_ms, utc_now
from mlflow_cli.utils.validators import (
    parse_key_value,
    validate_artifact_path,
    validate_safe_path,
)

__all__ = [
    "parse_key_value",
    "parse_to_datetime",
    "parse_to_ms",
    "upload_body",
    "utc_now",
    "validate_artifact_path",
    "validate_safe_path",
]
