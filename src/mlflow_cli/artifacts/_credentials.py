"""Client for the credentials-for-write exchange."""

from __future__ import annotations

from pydantic import ValidationError

from mlflow_cli.client import TrackingClient
from mlflow_cli.exceptions import TrackingError, UploadError
from mlflow_cli.logger import logger
from mlflow_cli.models.artifact import CredentialsForWriteResponse, UploadCredential


class CredentialBroker:
    """Exchanges (run, paths) for short-lived signed upload credentials.

    Credentials are returned to the caller and never cached; each one is
    meant for exactly one upload attempt.
    """

    def __init__(self, client: TrackingClient) -> None:
        self.client = client

    def request_write_credentials(self, run_id: str, paths: list[str]) -> list[UploadCredential]:
        """Request write credentials for artifact paths of a run.

        Args:
            run_id: Run ID
            paths: Artifact-relative paths to be written

        Returns:
            One credential per path returned by the broker (may be empty).

        Raises:
            AuthError: If the client has no credential source
            UploadError: If the exchange fails or returns an invalid body
        """
        self.client.require_auth("credentials-for-write")

        try:
            response = self.client.post(
                "artifacts/credentials-for-write",
                {"run_id": run_id, "path": list(paths)},
            )
        except TrackingError as e:
            raise UploadError(f"failed to get write credentials: {e}") from e

        try:
            parsed = CredentialsForWriteResponse.model_validate(response)
        except ValidationError as e:
            raise UploadError(f"invalid credentials-for-write response: {e}") from e

        logger.debug(f"Received {len(parsed.credential_infos)} write credentials for run {run_id}")
        return parsed.credential_infos

    def credential_for(self, run_id: str, path: str) -> UploadCredential:
        """Request the write credential for a single artifact path.

        Raises:
            AuthError: If the client has no credential source
            UploadError: If the exchange fails or returns no credential
        """
        credentials = self.request_write_credentials(run_id, [path])
        if not credentials:
            raise UploadError(f"no credentials returned for path: {path}")
        return credentials[0]
