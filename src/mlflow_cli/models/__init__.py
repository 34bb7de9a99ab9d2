"""
mlflow-cli data models package.

This package contains the data models shared by the tracking client, the
artifact router and the metric normalizer.
"""

from mlflow_cli.models.artifact import (
    ArtifactLocation,
    CredentialedStoreLocation,
    CredentialType,
    DirectStoreLocation,
    FileFailure,
    HttpHeader,
    LocalFilesystemLocation,
    UploadCredential,
    UploadResult,
)
from mlflow_cli.models.metrics import MetricPoint, MetricsFile, NormalizedMetric, TimeConfig
from mlflow_cli.models.run import RunConfig, RunInfo, RunStatus

__all__ = [
    "ArtifactLocation",
    "CredentialType",
    "CredentialedStoreLocation",
    "DirectStoreLocation",
    "FileFailure",
    "HttpHeader",
    "LocalFilesystemLocation",
    "MetricPoint",
    "MetricsFile",
    "NormalizedMetric",
    "RunConfig",
    "RunInfo",
    "RunStatus",
    "TimeConfig",
    "UploadCredential",
    "UploadResult",
]
