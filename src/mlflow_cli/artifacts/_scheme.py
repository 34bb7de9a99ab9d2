"""Artifact root URI classification."""

from __future__ import annotations

from mlflow_cli.exceptions import UnsupportedSchemeError
from mlflow_cli.models.artifact import (
    ArtifactLocation,
    CredentialedStoreLocation,
    DirectStoreLocation,
    LocalFilesystemLocation,
)

DIRECT_STORE_SCHEME = "mlflow-artifacts:"
CREDENTIALED_SCHEME = "dbfs:"
FILE_SCHEME = "file://"

# Namespace under which Databricks keeps tracking artifacts on DBFS
_CREDENTIALED_NAMESPACE = ("databricks", "mlflow-tracking")


def _split_segments(path: str) -> list[str]:
    """Split a URI path, dropping the empty segment of a rooted path."""
    segments = path.split("/")
    if segments and segments[0] == "":
        segments = segments[1:]
    return segments


def _read_ids(uri: str, segments: list[str]) -> tuple[str, str]:
    if len(segments) < 2 or not segments[0] or not segments[1]:
        raise UnsupportedSchemeError(uri, "experiment ID and run ID not found")
    return segments[0], segments[1]


def classify_artifact_uri(uri: str) -> ArtifactLocation:
    """Classify an artifact root URI into a storage location.

    Recognized forms:
    - ``mlflow-artifacts:/{experiment_id}/{run_id}/artifacts``: direct store
    - ``dbfs:/databricks/mlflow-tracking/{experiment_id}/{run_id}/artifacts``:
      credentialed store
    - ``file:///abs/path`` or ``/abs/path``: local filesystem

    Args:
        uri: Artifact root returned by the tracking server

    Returns:
        The matching location variant.

    Raises:
        UnsupportedSchemeError: If the URI matches no supported scheme or
            lacks the identifiers its scheme requires
    """
    if uri.startswith(DIRECT_STORE_SCHEME):
        segments = _split_segments(uri[len(DIRECT_STORE_SCHEME) :])
        experiment_id, run_id = _read_ids(uri, segments)
        return DirectStoreLocation(experiment_id=experiment_id, run_id=run_id)

    if uri.startswith(CREDENTIALED_SCHEME):
        segments = _split_segments(uri[len(CREDENTIALED_SCHEME) :])
        namespace_len = len(_CREDENTIALED_NAMESPACE)
        if tuple(segments[:namespace_len]) != _CREDENTIALED_NAMESPACE:
            raise UnsupportedSchemeError(uri, "DBFS artifact roots must live under /databricks/mlflow-tracking")
        experiment_id, run_id = _read_ids(uri, segments[namespace_len:])
        return CredentialedStoreLocation(experiment_id=experiment_id, run_id=run_id)

    if uri.startswith(FILE_SCHEME):
        path = uri[len(FILE_SCHEME) :]
        if not path.startswith("/"):
            raise UnsupportedSchemeError(uri, "file URIs must contain an absolute path")
        return LocalFilesystemLocation(path=path)

    if uri.startswith("/"):
        return LocalFilesystemLocation(path=uri)

    raise UnsupportedSchemeError(uri)
