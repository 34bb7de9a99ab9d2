"""Time-series metric normalization.

Aligns metric timestamps onto a fixed resolution grid and assigns step
numbers, expanding each input point into one metric per populated field.

Examples:
    >>> config = TimeConfig(resolution="1m", alignment="floor", step_mode="timestamp")
    >>> metrics = process_metrics(points, config)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from mlflow_cli.config import VALID_STEP_MODES
from mlflow_cli.exceptions import TimeConfigError
from mlflow_cli.models.metrics import MetricPoint, NormalizedMetric, TimeConfig
from mlflow_cli.utils.timestamp import parse_to_datetime, utc_now

__all__ = ["align_timestamp", "process_metrics", "resolution_duration"]

_RESOLUTIONS = {
    "1m": timedelta(minutes=1),
    "5m": timedelta(minutes=5),
    "1h": timedelta(hours=1),
}

_ALIGNMENTS = ("floor", "ceil", "round")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_MINUTE = timedelta(minutes=1)


def resolution_duration(resolution: str) -> timedelta:
    """Get the grid spacing for a resolution name.

    Raises:
        TimeConfigError: If the resolution is not supported
    """
    try:
        return _RESOLUTIONS[resolution]
    except KeyError:
        raise TimeConfigError(f"unsupported resolution: {resolution}") from None


def _check_alignment(alignment: str) -> None:
    if alignment not in _ALIGNMENTS:
        raise TimeConfigError(f"unsupported alignment: {alignment}")


def align_timestamp(ts: datetime, resolution: str, alignment: str) -> datetime:
    """Align a timestamp to the resolution grid.

    The grid is anchored at the Unix epoch, so alignment does not depend on
    the timestamp's UTC offset. The result keeps the input's timezone; naive
    input is treated as UTC.

    - floor: truncate down to the nearest multiple of the resolution
    - ceil: advance one unit if truncation moved the timestamp
    - round: advance one unit if the remainder is at least half a unit

    Args:
        ts: Timestamp to align
        resolution: One of "1m", "5m", "1h"
        alignment: One of "floor", "ceil", "round"

    Returns:
        The aligned timestamp.

    Raises:
        TimeConfigError: If resolution or alignment is not supported
    """
    duration = resolution_duration(resolution)
    _check_alignment(alignment)

    ts = parse_to_datetime(ts)
    remainder = (ts - _EPOCH) % duration
    aligned = ts - remainder

    if alignment == "ceil" and remainder > timedelta(0):
        return aligned + duration
    if alignment == "round" and remainder >= duration / 2:
        return aligned + duration
    return aligned


def _minutes_between(later: datetime, earlier: datetime) -> int:
    """Whole minutes from earlier to later, truncated toward zero."""
    return int((later - earlier) / _MINUTE)


def process_metrics(
    points: Iterable[MetricPoint],
    config: TimeConfig,
    base_time: datetime | None = None,
) -> list[NormalizedMetric]:
    """Normalize metric points into individual scalar metrics.

    The whole configuration is checked before any point is processed, so an
    unsupported setting never produces a partial result.

    Step assignment for points without an explicit step:
    - sequence: number of metrics emitted so far in this call
    - timestamp: whole minutes between the aligned timestamp and base_time
    - auto: timestamp rule for points carrying a timestamp, sequence otherwise

    Each populated field becomes one metric sharing the point's timestamp and
    step. ``error_count`` is always emitted; other fields only when non-zero.

    Args:
        points: Input metric points (order is preserved)
        config: Time alignment and step policy
        base_time: Reference instant for timestamp steps. Defaults to the first
            point's original timestamp, else the current time.

    Returns:
        List of normalized metrics.

    Raises:
        TimeConfigError: If the configuration contains an unsupported value
    """
    resolution_duration(config.resolution)
    _check_alignment(config.alignment)
    if config.step_mode not in VALID_STEP_MODES:
        raise TimeConfigError(f"unsupported step mode: {config.step_mode}")

    points = list(points)
    if base_time is not None:
        base = parse_to_datetime(base_time)
    elif points and points[0].timestamp is not None:
        base = points[0].timestamp
    else:
        base = utc_now()

    result: list[NormalizedMetric] = []
    for point in points:
        if point.timestamp is not None:
            timestamp = align_timestamp(point.timestamp, config.resolution, config.alignment)
        else:
            timestamp = utc_now()

        if point.step is not None:
            step = point.step
        elif config.step_mode == "timestamp" or (config.step_mode == "auto" and point.timestamp is not None):
            step = _minutes_between(timestamp, base)
        else:
            step = len(result)

        fields: list[tuple[str, float]] = []
        if point.execution_time != 0:
            fields.append(("execution_time", point.execution_time))
        if point.success_rate != 0:
            fields.append(("success_rate", point.success_rate))
        # error_count of 0 is a meaningful observation
        fields.append(("error_count", point.error_count))
        fields.extend((key, value) for key, value in point.extra_fields().items() if value != 0)

        for key, value in fields:
            result.append(NormalizedMetric(key=key, value=value, timestamp=timestamp, step=step))

    return result
