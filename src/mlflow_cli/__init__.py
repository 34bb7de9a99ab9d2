"""
mlflow-cli - Command line client for MLflow experiment tracking.

Logs runs, parameters, time-aligned metrics and artifacts to an MLflow
tracking server or a Databricks workspace.

Examples:
    >>> from mlflow_cli import ArtifactRouter, ClientConfig, TrackingClient
    >>> client = TrackingClient(ClientConfig.from_env())
    >>> ArtifactRouter(client).upload(run_id, "model.pkl")
"""

from mlflow_cli.artifacts import ArtifactRouter
from mlflow_cli.client import TrackingClient
from mlflow_cli.config import ClientConfig
from mlflow_cli.models import MetricPoint, NormalizedMetric, TimeConfig
from mlflow_cli.timeseries import align_timestamp, process_metrics

__version__ = "0.1.0"
__all__ = [
    "ArtifactRouter",
    "ClientConfig",
    "MetricPoint",
    "NormalizedMetric",
    "TimeConfig",
    "TrackingClient",
    "align_timestamp",
    "process_metrics",
]
