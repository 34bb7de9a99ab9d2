"""
mlflow-cli exceptions module.

Contains exception classes shared by the tracking client, artifact uploaders
and metric normalizer, kept here to avoid circular dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mlflow_cli.models.artifact import UploadResult


class MlflowCliError(Exception):
    """Base class for all errors raised by mlflow-cli."""

    pass


class ConfigError(MlflowCliError):
    """Exception raised when the client configuration is missing or invalid."""

    pass


class UnsupportedSchemeError(MlflowCliError):
    """Exception raised when an artifact root matches no known storage scheme."""

    def __init__(self, uri: str, reason: str | None = None) -> None:
        self.uri = uri
        message = f"unsupported artifact URI scheme: {uri}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NotFoundError(MlflowCliError):
    """Exception raised when a local file to upload does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class AuthError(MlflowCliError):
    """Exception raised when an authenticated exchange is not permitted."""

    pass


class UploadError(MlflowCliError):
    """Exception raised when a single artifact upload fails.

    Attributes:
        status_code: HTTP status of the failed response, None for transport
            or filesystem failures.
        body: Response body returned by the storage backend, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} with status {status_code}: {body or ''}"
        super().__init__(message)


class PartialFailure(MlflowCliError):
    """Exception raised when no file of a multi-file upload succeeded."""

    def __init__(self, result: UploadResult) -> None:
        self.result = result
        super().__init__(f"failed to upload any artifacts ({len(result.failed)}/{result.total} failed)")


class TimeConfigError(MlflowCliError, ValueError):
    """Exception raised for an unsupported resolution, alignment or step mode."""

    pass


class TrackingError(MlflowCliError):
    """Exception raised when a tracking server request fails."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} with status {status_code}: {body or ''}"
        super().__init__(message)


class ParseError(MlflowCliError):
    """Exception raised when a parameters or metrics file cannot be decoded."""

    pass
