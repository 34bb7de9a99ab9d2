"""Storage router: sends artifact uploads to the backend behind a run's artifact root."""

from __future__ import annotations

import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from mlflow_cli.artifacts._credentials import CredentialBroker
from mlflow_cli.artifacts._direct import DirectStoreUploader, LocalFilesystemUploader
from mlflow_cli.artifacts._scheme import classify_artifact_uri
from mlflow_cli.artifacts._signed_uri import SignedURIUploader
from mlflow_cli.client import TrackingClient
from mlflow_cli.exceptions import MlflowCliError, NotFoundError, UploadError
from mlflow_cli.logger import logger
from mlflow_cli.models.artifact import (
    ArtifactLocation,
    CredentialedStoreLocation,
    DirectStoreLocation,
    FileFailure,
    LocalFilesystemLocation,
    UploadResult,
)
from mlflow_cli.utils.validators import validate_artifact_path


class ArtifactRouter:
    """Uploads local files to whichever storage backs a run's artifact root.

    Examples:
        >>> router = ArtifactRouter(TrackingClient(config))
        >>> router.upload(run_id, "model.pkl", "models/final.pkl")
        >>> result = router.upload_many(run_id, ["model.pkl", "config.yaml"])
    """

    def __init__(
        self,
        client: TrackingClient,
        broker: CredentialBroker | None = None,
        signed_uploader: SignedURIUploader | None = None,
        direct_uploader: DirectStoreUploader | None = None,
        local_uploader: LocalFilesystemUploader | None = None,
    ) -> None:
        self.client = client
        self.broker = broker or CredentialBroker(client)
        self.signed_uploader = signed_uploader or SignedURIUploader(client.config)
        self.direct_uploader = direct_uploader or DirectStoreUploader(client)
        self.local_uploader = local_uploader or LocalFilesystemUploader()
        self.max_workers = client.config.artifact_upload_workers

    def resolve_location(self, run_id: str) -> ArtifactLocation:
        """Fetch and classify the artifact root of a run.

        Raises:
            TrackingError: If the run or its artifact URI cannot be fetched
            UnsupportedSchemeError: If the artifact URI scheme is unsupported
        """
        artifact_uri = self.client.get_artifact_uri(run_id)
        location = classify_artifact_uri(artifact_uri)
        logger.debug(f"Artifact root for run {run_id}: {artifact_uri} ({location.kind})")
        return location

    def upload(self, run_id: str, local_path: str, artifact_path: str | None = None) -> str:
        """Upload one file as an artifact of a run.

        Args:
            run_id: Run ID
            local_path: File to upload
            artifact_path: Destination relative to the run's artifact root.
                Defaults to the file's base name.

        Returns:
            The artifact path the file was uploaded to.

        Raises:
            NotFoundError: If the local file does not exist
            UnsupportedSchemeError: If the artifact root scheme is unsupported
            AuthError: If a credentialed upload is not permitted
            UploadError: If the upload itself fails
        """
        self._check_local_file(local_path)
        location = self.resolve_location(run_id)
        return self._upload_to(location, run_id, local_path, artifact_path)

    def upload_many(
        self,
        run_id: str,
        files: Sequence[str],
        artifact_path: str | None = None,
    ) -> UploadResult:
        """Upload several files independently.

        A failure for one file never aborts the others. Files are uploaded on
        a bounded thread pool; the result lists files in input order.

        Workers share the uploaders' sessions. Uploads pass headers and body
        per request and never modify a session, so only the connection pool
        is shared between threads.

        Args:
            run_id: Run ID
            files: Local files to upload
            artifact_path: Custom destination, only valid for a single file

        Returns:
            UploadResult with succeeded paths and per-file failures. Callers
            decide what to do with it; see UploadResult.raise_if_all_failed().

        Raises:
            ValueError: If no files are given, or artifact_path is combined
                with more than one file
        """
        if not files:
            raise ValueError("at least one file must be specified")
        if artifact_path and len(files) > 1:
            raise ValueError("artifact_path can only be used when uploading a single file")

        try:
            location = self.resolve_location(run_id)
        except MlflowCliError as e:
            # Without a usable artifact root no file can be uploaded
            return UploadResult(failed=[FileFailure(path=path, error=e) for path in files])

        def upload_one(path: str) -> MlflowCliError | None:
            try:
                self._check_local_file(path)
                self._upload_to(location, run_id, path, artifact_path)
            except MlflowCliError as e:
                logger.debug(f"Failed to upload {path}: {e}")
                return e
            return None

        workers = max(1, min(self.max_workers, len(files)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="artifact-upload") as executor:
            errors = list(executor.map(upload_one, files))

        result = UploadResult()
        for path, error in zip(files, errors):
            if error is None:
                result.succeeded.append(path)
            else:
                result.failed.append(FileFailure(path=path, error=error))

        logger.debug(f"Uploaded {len(result.succeeded)}/{result.total} artifacts for run {run_id}")
        return result

    @staticmethod
    def _check_local_file(local_path: str) -> None:
        if not os.path.isfile(local_path):
            raise NotFoundError(local_path)

    def _upload_to(
        self,
        location: ArtifactLocation,
        run_id: str,
        local_path: str,
        artifact_path: str | None,
    ) -> str:
        artifact_path = artifact_path or os.path.basename(local_path)
        try:
            validate_artifact_path(artifact_path)
        except ValueError as e:
            raise UploadError(str(e)) from e

        if isinstance(location, CredentialedStoreLocation):
            credential = self.broker.credential_for(location.run_id, artifact_path)
            self.signed_uploader.upload(credential, local_path)
        elif isinstance(location, DirectStoreLocation):
            self.direct_uploader.upload(location, local_path, artifact_path)
        elif isinstance(location, LocalFilesystemLocation):
            self.local_uploader.upload(location, local_path, artifact_path)
        else:
            raise TypeError(f"Unknown artifact location: {location!r}")

        logger.debug(f"Uploaded {local_path} as {artifact_path} to run {run_id}")
        return artifact_path
