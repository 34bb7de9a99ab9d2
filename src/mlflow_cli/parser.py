"""Parameter and metric file parsing (JSON and YAML)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from mlflow_cli.exceptions import ParseError
from mlflow_cli.models.metrics import MetricsFile

__all__ = ["ParametersFile", "parse_metrics_file", "parse_params_file", "load_document"]

SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")


class ParametersFile(BaseModel):
    """Top-level layout of a parameters file."""

    parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def _stringify_values(cls, value: Any) -> Any:
        # Non-string scalars (numbers, booleans) are logged as their string form
        if isinstance(value, dict):
            return {str(k): v if isinstance(v, str) else str(v) for k, v in value.items()}
        return value


def load_document(path: str | Path) -> Any:
    """Load a JSON or YAML document, choosing the decoder by file extension.

    Args:
        path: File to read (.json, .yaml or .yml)

    Returns:
        The decoded document.

    Raises:
        ParseError: If the extension is unsupported, or the file cannot be
            read or decoded
    """
    file_path = Path(path)
    ext = file_path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ParseError(f"unsupported file format: {ext or '(none)'} (supported: {', '.join(SUPPORTED_EXTENSIONS)})")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            if ext == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except OSError as e:
        raise ParseError(f"failed to open file {file_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ParseError(f"failed to parse JSON file {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ParseError(f"failed to parse YAML file {file_path}: {e}") from e


def parse_params_file(path: str | Path) -> dict[str, str]:
    """Parse a parameters file of the form ``{"parameters": {key: value}}``.

    Raises:
        ParseError: If the file cannot be read or has an invalid layout
    """
    data = load_document(path)
    try:
        return ParametersFile.model_validate(data or {}).parameters
    except ValidationError as e:
        raise ParseError(f"failed to parse parameters file {path}: {e}") from e


def parse_metrics_file(path: str | Path) -> MetricsFile:
    """Parse a metrics file of the form ``{"metrics": [point, ...]}``.

    Each point may carry an ISO 8601 (or UNIX ms) ``timestamp``, an integer
    ``step`` and numeric fields.

    Raises:
        ParseError: If the file cannot be read or has an invalid layout
    """
    data = load_document(path)
    try:
        return MetricsFile.model_validate(data or {})
    except ValidationError as e:
        raise ParseError(f"failed to parse metrics file {path}: {e}") from e
