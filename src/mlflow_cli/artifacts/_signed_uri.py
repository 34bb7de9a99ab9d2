"""Uploads to pre-authorized cloud storage URLs."""

from __future__ import annotations

import requests
from requests.structures import CaseInsensitiveDict

from mlflow_cli.config import ClientConfig
from mlflow_cli.exceptions import UploadError
from mlflow_cli.logger import logger
from mlflow_cli.models.artifact import CredentialType, UploadCredential
from mlflow_cli.utils.file import upload_body

_OCTET_STREAM = "application/octet-stream"

# Default headers per credential type; broker-supplied headers are overlaid
_DEFAULT_HEADERS: dict[str, dict[str, str]] = {
    CredentialType.AWS_PRESIGNED_URL.value: {"Content-Type": _OCTET_STREAM},
    CredentialType.AZURE_SAS_URI.value: {"Content-Type": _OCTET_STREAM, "x-ms-blob-type": "BlockBlob"},
    CredentialType.GCP_SIGNED_URL.value: {"Content-Type": _OCTET_STREAM},
    CredentialType.AZURE_ADLS_GEN2_SAS_URI.value: {"Content-Type": _OCTET_STREAM},
}

# Used for credential types this client does not know yet
_FALLBACK_HEADERS = {"Content-Type": _OCTET_STREAM}

# Headers that must not reach the storage provider, per credential type
_FORBIDDEN_HEADERS: dict[str, tuple[str, ...]] = {
    # S3 rejects chunked uploads on presigned PUTs
    CredentialType.AWS_PRESIGNED_URL.value: ("Transfer-Encoding",),
}


def build_signed_uri_headers(credential: UploadCredential, content_length: int) -> CaseInsensitiveDict:
    """Build the request headers for a signed URI upload.

    Type-specific defaults are set first and the credential's own headers
    are applied on top, so the broker can override a default value but the
    default header is never dropped.

    Args:
        credential: Upload credential from the broker
        content_length: Size of the request body in bytes

    Returns:
        Case-insensitive header mapping.
    """
    headers: CaseInsensitiveDict = CaseInsensitiveDict()
    headers["Content-Length"] = str(content_length)
    headers.update(_DEFAULT_HEADERS.get(credential.type, _FALLBACK_HEADERS))

    for header in credential.headers:
        headers[header.name] = header.value

    for name in _FORBIDDEN_HEADERS.get(credential.type, ()):
        headers.pop(name, None)

    return headers


class SignedURIUploader:
    """Performs a single PUT of a local file to a signed URI.

    Uses its own session without tracking-server authentication: the signed
    URI carries the authorization, and tracking credentials must not be sent
    to the storage provider. The default session also ignores the
    environment (``~/.netrc``, proxy variables) so no second credential is
    attached to the signed request.

    The session is shared by concurrent uploads. Each request passes its
    own headers and body; nothing mutates the session after construction,
    so threads share only its connection pool.
    """

    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        self.timeout = config.http_request_timeout
        if session is None:
            session = requests.Session()
            session.trust_env = False
        self.session = session

    def upload(self, credential: UploadCredential, local_path: str) -> None:
        """Upload a file to the credential's signed URI.

        Args:
            credential: Upload credential (used once, then discarded)
            local_path: File to upload

        Raises:
            UploadError: If the file cannot be read, the request fails, or the
                storage provider returns a non-2xx status
        """
        credential_type = credential.type or "unknown"
        if credential.type not in _DEFAULT_HEADERS:
            logger.debug(f"Unknown credential type {credential_type}, using generic headers")

        try:
            with open(local_path, "rb") as f:
                body, content_length = upload_body(f)
                headers = build_signed_uri_headers(credential, content_length)
                response = self.session.put(
                    credential.signed_uri,
                    data=body,
                    headers=headers,
                    timeout=self.timeout,
                )
        except requests.RequestException as e:
            raise UploadError(f"failed to upload to {credential_type} signed URI: {e}") from e
        except OSError as e:
            raise UploadError(f"failed to read {local_path}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise UploadError(
                f"{credential_type} signed URI upload failed",
                status_code=response.status_code,
                body=response.text,
            )

        logger.debug(f"Uploaded {local_path} to {credential_type} signed URI ({content_length} bytes)")
