"""Artifact storage package.

Routes artifact uploads to the storage backend behind a run's artifact root:
the tracking server's artifact service, signed cloud storage URIs obtained
from a credential broker, or the local filesystem.
"""

from mlflow_cli.artifacts._credentials import CredentialBroker
from mlflow_cli.artifacts._direct import DirectStoreUploader, LocalFilesystemUploader
from mlflow_cli.artifacts._router import ArtifactRouter
from mlflow_cli.artifacts._scheme import classify_artifact_uri
from mlflow_cli.artifacts._signed_uri import SignedURIUploader, build_signed_uri_headers

__all__ = [
    "ArtifactRouter",
    "CredentialBroker",
    "DirectStoreUploader",
    "LocalFilesystemUploader",
    "SignedURIUploader",
    "build_signed_uri_headers",
    "classify_artifact_uri",
]
