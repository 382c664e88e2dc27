from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

from lending_uploads.core.artifacts import ArtifactKind

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadFile:
    """In-memory payload handed to the uploader."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path | str, content_type: str | None = None) -> UploadFile:
        path = Path(path)
        if content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            data=path.read_bytes(),
        )


class UploadRequest(BaseModel):
    """Metadata sent to the credential issuer. Built once per upload.

    Values are passed through unchecked; the issuer decides what is valid.
    """

    file_name: str
    content_type: str
    file_size: int | None = None
    owner_id: str
    version: int
    kind: ArtifactKind

    def to_payload(self) -> dict:
        return self.model_dump(
            include={"file_name", "content_type", "file_size", "version"},
            exclude_none=True,
        )


@dataclass(frozen=True)
class UploadedArtifact:
    storage_key: str
