"""
Metric data models.

A MetricPoint is one decoded input record; the normalizer expands it into one
NormalizedMetric per populated scalar field.
"""

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mlflow_cli.utils.timestamp import parse_to_datetime, parse_to_ms

# Scalar fields known to the normalizer, in emission order
KNOWN_FIELDS = ("execution_time", "success_rate", "error_count")


class MetricPoint(BaseModel):
    """Single metric input record.

    Besides the known scalar fields, any additional numeric field is accepted
    and treated as an extra metric.
    """

    model_config = ConfigDict(extra="allow")

    timestamp: datetime.datetime | None = Field(default=None, description="Observation time (optional)")
    step: int | None = Field(default=None, description="Explicit step number (optional)")
    execution_time: float = 0.0
    success_rate: float = 0.0
    error_count: float = 0.0

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime.datetime | None:
        if value is None:
            return None
        return parse_to_datetime(value)

    def extra_fields(self) -> dict[str, float]:
        """Return additional numeric fields in declaration order.

        Raises:
            ValueError: If an additional field is not a number
        """
        extras: dict[str, float] = {}
        for key, value in (self.model_extra or {}).items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Unsupported value type for '{key}': {type(value)}. Only int and float are supported.")
            extras[key] = float(value)
        return extras

    @model_validator(mode="after")
    def _check_extra_fields(self) -> "MetricPoint":
        self.extra_fields()
        return self


class MetricsFile(BaseModel):
    """Top-level layout of a metrics file."""

    metrics: list[MetricPoint] = Field(default_factory=list)


class NormalizedMetric(BaseModel):
    """A single scalar metric observation ready to be logged."""

    key: str
    value: float
    timestamp: datetime.datetime
    step: int

    @property
    def timestamp_ms(self) -> int:
        """Timestamp as UNIX milliseconds."""
        return parse_to_ms(self.timestamp)

    def __str__(self) -> str:
        return f"NormalizedMetric(key={self.key}, value={self.value}, step={self.step})"


class TimeConfig(BaseModel):
    """Time alignment and step policy for one normalization call."""

    model_config = ConfigDict(frozen=True)

    resolution: str = "1m"
    alignment: str = "floor"
    step_mode: str = "auto"
