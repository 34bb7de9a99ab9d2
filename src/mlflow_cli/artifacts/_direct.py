"""Uploads that need no external credential: tracking server and local disk."""

from __future__ import annotations

import shutil
from pathlib import Path
from urllib.parse import quote

import requests

from mlflow_cli.client import TrackingClient
from mlflow_cli.exceptions import UploadError
from mlflow_cli.logger import logger
from mlflow_cli.models.artifact import DirectStoreLocation, LocalFilesystemLocation
from mlflow_cli.utils.file import upload_body
from mlflow_cli.utils.validators import validate_safe_path

_ARTIFACTS_API = "/api/2.0/mlflow-artifacts/artifacts"


class DirectStoreUploader:
    """Uploads files through the tracking server's artifact endpoint.

    Reuses the tracking client's authenticated session; see
    ArtifactRouter.upload_many for how it is shared between threads.
    """

    def __init__(self, client: TrackingClient) -> None:
        self.client = client

    def artifact_url(self, location: DirectStoreLocation, artifact_path: str) -> str:
        """Build the artifact endpoint URL for a destination path."""
        return self.client.url(
            f"{_ARTIFACTS_API}/{quote(location.experiment_id, safe='')}/{quote(location.run_id, safe='')}"
            f"/artifacts/{quote(artifact_path, safe='/')}"
        )

    def upload(self, location: DirectStoreLocation, local_path: str, artifact_path: str) -> None:
        """PUT a file to the tracking server's artifact store.

        Args:
            location: Direct-store artifact root
            local_path: File to upload
            artifact_path: Destination path relative to the run's artifacts

        Raises:
            UploadError: If the file cannot be read, the request fails, or the
                server returns a non-2xx status
        """
        url = self.artifact_url(location, artifact_path)

        try:
            with open(local_path, "rb") as f:
                body, content_length = upload_body(f)
                response = self.client.session.put(
                    url,
                    data=body,
                    headers={
                        "Content-Type": "application/octet-stream",
                        "Content-Length": str(content_length),
                    },
                    timeout=self.client.timeout,
                )
        except requests.RequestException as e:
            raise UploadError(f"failed to upload to MLflow Artifacts Service: {e}") from e
        except OSError as e:
            raise UploadError(f"failed to read {local_path}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UploadError(
                "MLflow Artifacts Service upload failed",
                status_code=response.status_code,
                body=response.text,
            )

        logger.debug(f"Uploaded {local_path} to {url}")


class LocalFilesystemUploader:
    """Copies files into an artifact root on the local filesystem."""

    def target_path(self, location: LocalFilesystemLocation, artifact_path: str) -> Path:
        """Resolve the destination file for an artifact path.

        Raises:
            UploadError: If the destination would escape the artifact root
        """
        root = Path(location.path)
        target = root / artifact_path
        try:
            validate_safe_path(target, root)
        except ValueError as e:
            raise UploadError(f"invalid artifact destination {target}: {e}") from e
        return target

    def upload(self, location: LocalFilesystemLocation, local_path: str, artifact_path: str) -> None:
        """Copy a file into the local artifact root, creating directories.

        Raises:
            UploadError: If the directory cannot be created or the copy fails
        """
        target = self.target_path(location, artifact_path)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise UploadError(f"failed to create directory {target.parent}: {e}") from e

        try:
            shutil.copyfile(local_path, target)
        except OSError as e:
            raise UploadError(f"failed to copy file content to {target}: {e}") from e

        logger.debug(f"Copied {local_path} to {target}")
