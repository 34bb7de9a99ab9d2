"""
Artifact storage models.

Artifact locations are a closed tagged union produced once by the URI scheme
classifier and matched by the storage router. Upload credentials mirror the
``credentials-for-write`` wire format.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from mlflow_cli.exceptions import PartialFailure


class DirectStoreLocation(BaseModel):
    """Artifact root served by the tracking server's own artifact endpoint."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["direct_store"] = "direct_store"
    experiment_id: str
    run_id: str


class CredentialedStoreLocation(BaseModel):
    """Artifact root that requires per-path signed upload credentials."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["credentialed_store"] = "credentialed_store"
    experiment_id: str
    run_id: str


class LocalFilesystemLocation(BaseModel):
    """Artifact root on the local filesystem."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local_filesystem"] = "local_filesystem"
    path: str


ArtifactLocation = Annotated[
    DirectStoreLocation | CredentialedStoreLocation | LocalFilesystemLocation,
    Field(discriminator="kind"),
]


class CredentialType(str, Enum):
    """Signed URI flavours returned by the credential broker."""

    AWS_PRESIGNED_URL = "AWS_PRESIGNED_URL"
    AZURE_SAS_URI = "AZURE_SAS_URI"
    GCP_SIGNED_URL = "GCP_SIGNED_URL"
    AZURE_ADLS_GEN2_SAS_URI = "AZURE_ADLS_GEN2_SAS_URI"


class HttpHeader(BaseModel):
    """A single HTTP header supplied by the credential broker."""

    name: str
    value: str


class UploadCredential(BaseModel):
    """Short-lived write credential for one (run, path) pair.

    ``type`` is kept as a plain string so that credential types unknown to
    this client still parse; the uploader falls back to generic headers.
    """

    run_id: str = ""
    path: str = ""
    signed_uri: str
    headers: list[HttpHeader] = Field(default_factory=list)
    type: str = ""


class CredentialsForWriteResponse(BaseModel):
    """Response body of the credentials-for-write API."""

    credential_infos: list[UploadCredential] = Field(default_factory=list)


class FileFailure(BaseModel):
    """A file that could not be uploaded, with the error that stopped it."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: str
    error: Exception


class UploadResult(BaseModel):
    """Outcome of a multi-file artifact upload."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    succeeded: list[str] = Field(default_factory=list)
    failed: list[FileFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        """True when at least one file was uploaded."""
        return bool(self.succeeded)

    def raise_if_all_failed(self) -> None:
        """Raise PartialFailure if no file was uploaded."""
        if self.failed and not self.succeeded:
            raise PartialFailure(self)
