#!/usr/bin/env python3
"""
mlflow-cli tool

Command line interface for logging runs, parameters, metrics and artifacts
to an MLflow tracking server or Databricks workspace.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections import Counter

from mlflow_cli.artifacts import ArtifactRouter
from mlflow_cli.client import TrackingClient
from mlflow_cli.config import VALID_STEP_MODES, VALID_TIME_ALIGNMENTS, VALID_TIME_RESOLUTIONS, ClientConfig
from mlflow_cli.exceptions import ConfigError, MlflowCliError
from mlflow_cli.logger import logger, set_level
from mlflow_cli.models.metrics import TimeConfig
from mlflow_cli.models.run import RunConfig, RunStatus
from mlflow_cli.parser import parse_metrics_file, parse_params_file
from mlflow_cli.timeseries import process_metrics
from mlflow_cli.utils.timestamp import parse_to_datetime
from mlflow_cli.utils.validators import parse_key_value

_ESCAPE_SEQUENCES = (("\\n", "\n"), ("\\t", "\t"), ("\\r", "\r"), ("\\\\", "\\"))


def process_escape_sequences(text: str) -> str:
    """
    Process common escape sequences typed literally on the command line

    Args:
        text: Raw text (e.g. "line1\\nline2")

    Returns:
        Text with \\n, \\t, \\r and \\\\ replaced
    """
    for escaped, actual in _ESCAPE_SEQUENCES:
        text = text.replace(escaped, actual)
    return text


def parse_pairs(items: list[str], kind: str) -> dict[str, str]:
    """
    Parse repeated key=value arguments

    Raises:
        ValueError: If an item is not in key=value format
    """
    pairs: dict[str, str] = {}
    for item in items:
        key, value = parse_key_value(item, kind)
        pairs[key] = value
    return pairs


def build_config(args: argparse.Namespace) -> ClientConfig:
    """
    Build the client configuration from environment and global flags
    """
    return ClientConfig.from_env(
        tracking_uri=args.tracking_uri,
        experiment_id=getattr(args, "experiment_id", None),
    )


def run_start(args: argparse.Namespace) -> None:
    """
    Create a new run and print its ID (only the ID, for shell scripting)
    """
    config = build_config(args)
    if not config.experiment_id:
        raise ConfigError("experiment ID must be specified via --experiment-id flag or MLFLOW_EXPERIMENT_ID environment variable")

    try:
        tags = parse_pairs(args.tag, "tag")
    except ValueError as e:
        raise ConfigError(str(e)) from e

    run_config = RunConfig(
        experiment_id=config.experiment_id,
        run_name=args.run_name or None,
        tags=tags,
        description=process_escape_sequences(args.description) if args.description else None,
    )

    client = TrackingClient(config)
    run_info = client.create_run(run_config)
    print(run_info.run_id)


def run_end(args: argparse.Namespace) -> None:
    """
    End a run with a terminal status
    """
    config = build_config(args)
    status = RunStatus(args.status)

    client = TrackingClient(config)
    client.update_run(args.run_id, status)

    print("Run ended successfully")
    print(f"Run ID: {args.run_id}")
    print(f"Status: {status.value}")


def _print_params(params: dict[str, str]) -> None:
    for key, value in params.items():
        print(f"  {key}: {value}")


def log_params(args: argparse.Namespace) -> None:
    """
    Log parameters given as --param key=value and/or loaded from a file
    """
    if not args.param and not args.from_file:
        raise ConfigError("either --param or --from-file must be specified")

    config = build_config(args)
    client = TrackingClient(config)

    if args.param:
        try:
            params = parse_pairs(args.param, "parameter")
        except ValueError as e:
            raise ConfigError(str(e)) from e
        client.log_params(args.run_id, params)
        print(f"Successfully logged {len(params)} parameters")
        _print_params(params)

    if args.from_file:
        params = parse_params_file(args.from_file)
        client.log_params(args.run_id, params)
        print(f"Successfully logged {len(params)} parameters from {args.from_file}")
        _print_params(params)


def log_metric(args: argparse.Namespace) -> None:
    """
    Log a single metric value
    """
    timestamp = None
    if args.timestamp:
        try:
            timestamp = parse_to_datetime(args.timestamp)
        except ValueError as e:
            raise ConfigError(f"invalid timestamp format: {args.timestamp} (expected ISO8601)") from e

    step = args.step if args.step is not None and args.step >= 0 else None

    config = build_config(args)
    client = TrackingClient(config)
    client.log_metric(args.run_id, args.name, args.value, timestamp=timestamp, step=step)

    message = f"Successfully logged metric: {args.name} = {args.value:f}"
    if step is not None:
        message += f" (step: {step})"
    if timestamp is not None:
        message += f" (timestamp: {timestamp.isoformat()})"
    print(message)


def log_metrics(args: argparse.Namespace) -> None:
    """
    Log metrics from a JSON/YAML file after time alignment and step assignment
    """
    config = ClientConfig.from_env(
        tracking_uri=args.tracking_uri,
        time_resolution=args.time_resolution,
        time_alignment=args.time_alignment,
        step_mode=args.step_mode,
    )
    client = TrackingClient(config)

    metrics_file = parse_metrics_file(args.from_file)
    time_config = TimeConfig(
        resolution=config.time_resolution,
        alignment=config.time_alignment,
        step_mode=config.step_mode,
    )
    metrics = process_metrics(metrics_file.metrics, time_config)
    client.log_batch_metrics(args.run_id, metrics)

    print(f"Successfully logged {len(metrics)} metrics from {args.from_file}")
    print(f"Time configuration: resolution={time_config.resolution}, alignment={time_config.alignment}, step_mode={time_config.step_mode}")
    print("Metrics summary:")
    for key, count in Counter(metric.key for metric in metrics).items():
        print(f"  {key}: {count} data points")


def log_artifact(args: argparse.Namespace) -> None:
    """
    Upload one or more files as run artifacts

    Each file is uploaded independently; the command fails only when no
    file could be uploaded.
    """
    if len(args.file) > 1 and args.artifact_path:
        raise ConfigError("--artifact-path can only be used when uploading a single file")

    config = build_config(args)
    router = ArtifactRouter(TrackingClient(config))

    result = router.upload_many(args.run_id, args.file, args.artifact_path)
    for failure in result.failed:
        logger.error(f"Failed to upload {failure.path}: {failure.error}")
    result.raise_if_all_failed()

    if len(args.file) == 1:
        print(f"Successfully uploaded artifact: {args.file[0]}")
        print(f"  Artifact path: {args.artifact_path or os.path.basename(args.file[0])}")
    else:
        print(f"Successfully uploaded {len(result.succeeded)}/{result.total} artifacts")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser with all subcommands
    """
    parser = argparse.ArgumentParser(
        prog="mlflow-cli",
        description="A command line tool for MLflow tracking operations",
    )
    parser.add_argument("--tracking-uri", default=None, help="MLflow tracking URI (overrides MLFLOW_TRACKING_URI)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    # run start / run end
    run_parser = subparsers.add_parser("run", help="Manage MLflow runs")
    run_subparsers = run_parser.add_subparsers(dest="run_command", help="Run subcommands")

    start_parser = run_subparsers.add_parser("start", help="Start a new MLflow run")
    start_parser.add_argument("--experiment-id", default=None, help="Experiment ID (overrides MLFLOW_EXPERIMENT_ID)")
    start_parser.add_argument("--run-name", default=None, help="Run name (default: timestamp-based)")
    start_parser.add_argument("--tag", action="append", default=[], help="Tag in key=value format (repeatable)")
    start_parser.add_argument("--description", default=None, help="Run description (supports \\n, \\t escapes)")
    start_parser.set_defaults(handler=run_start)

    end_parser = run_subparsers.add_parser("end", help="End an MLflow run")
    end_parser.add_argument("--run-id", required=True, help="Run ID to end")
    end_parser.add_argument(
        "--status",
        choices=[status.value for status in RunStatus.end_statuses()],
        default=RunStatus.FINISHED.value,
        help="End status (default: FINISHED)",
    )
    end_parser.set_defaults(handler=run_end)

    # log params / metric / metrics / artifact
    log_parser = subparsers.add_parser("log", help="Log parameters, metrics, and artifacts")
    log_subparsers = log_parser.add_subparsers(dest="log_command", help="Log subcommands")

    params_parser = log_subparsers.add_parser("params", help="Log parameters to MLflow run")
    params_parser.add_argument("--run-id", required=True, help="Run ID to log parameters to")
    params_parser.add_argument("--param", action="append", default=[], help="Parameter in key=value format (repeatable)")
    params_parser.add_argument("--from-file", default=None, help="Load parameters from file (JSON/YAML)")
    params_parser.set_defaults(handler=log_params)

    metric_parser = log_subparsers.add_parser("metric", help="Log a single metric to MLflow run")
    metric_parser.add_argument("--run-id", required=True, help="Run ID to log metric to")
    metric_parser.add_argument("--name", required=True, help="Metric name")
    metric_parser.add_argument("--value", required=True, type=float, help="Metric value")
    metric_parser.add_argument("--step", type=int, default=None, help="Step number (optional)")
    metric_parser.add_argument("--timestamp", default=None, help="Timestamp in ISO8601 format (optional)")
    metric_parser.set_defaults(handler=log_metric)

    metrics_parser = log_subparsers.add_parser("metrics", help="Log multiple metrics from file to MLflow run")
    metrics_parser.add_argument("--run-id", required=True, help="Run ID to log metrics to")
    metrics_parser.add_argument("--from-file", required=True, help="Load metrics from file (JSON/YAML)")
    metrics_parser.add_argument("--time-resolution", choices=VALID_TIME_RESOLUTIONS, default=None, help="Time resolution (default: MLFLOW_TIME_RESOLUTION or 1m)")
    metrics_parser.add_argument("--time-alignment", choices=VALID_TIME_ALIGNMENTS, default=None, help="Time alignment (default: MLFLOW_TIME_ALIGNMENT or floor)")
    metrics_parser.add_argument("--step-mode", choices=VALID_STEP_MODES, default=None, help="Step mode (default: MLFLOW_STEP_MODE or auto)")
    metrics_parser.set_defaults(handler=log_metrics)

    artifact_parser = log_subparsers.add_parser("artifact", help="Log artifact to MLflow run")
    artifact_parser.add_argument("--run-id", required=True, help="Run ID to upload artifacts to")
    artifact_parser.add_argument("--file", action="append", required=True, help="File path to upload (repeatable)")
    artifact_parser.add_argument("--artifact-path", default=None, help="Custom artifact path (single file only)")
    artifact_parser.set_defaults(handler=log_artifact)

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI main entry point
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_level(logging.DEBUG)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        sys.exit(2)

    try:
        handler(args)
    except MlflowCliError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
