"""Presigned upload workflow.

``upload_artifact`` asks a credential issuer for a presigned URL, PUTs the
bytes to it and hands back the storage key. Both collaborators are injected,
so the workflow has no opinion about transports. A storage key is only ever
returned after the transfer succeeded.
"""
from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from lending_uploads.client.models import UploadedArtifact, UploadFile, UploadRequest
from lending_uploads.client.transfer import HttpStorageTransfer
from lending_uploads.core.artifacts import ArtifactKind
from lending_uploads.core.config import get_settings
from lending_uploads.schemas import PresignedUpload


@runtime_checkable
class CredentialIssuer(Protocol):
    """Mints a presigned upload URL and storage key for one upload."""

    async def __call__(self, request: UploadRequest) -> PresignedUpload:
        ...


@runtime_checkable
class StorageTransfer(Protocol):
    """Writes a payload to a presigned URL; raises on any non-success."""

    async def __call__(self, upload_url: str, file: UploadFile) -> None:
        ...


class ArtifactUploadError(Exception):
    """Single display-ready failure for either phase of an upload."""

    def __init__(self, kind: ArtifactKind, detail: str) -> None:
        self.kind = kind
        self.detail = detail
        self.message = f"{kind.label} upload failed: {detail}"
        super().__init__(self.message)


def describe_failure(failure: object) -> str:
    """Render an arbitrary failure as one line of text."""
    message = getattr(failure, "message", None)
    if isinstance(message, str) and message:
        return message
    text = str(failure)
    if not text and isinstance(failure, BaseException):
        return type(failure).__name__
    return text


class UploadCoordinator:
    def __init__(self, transfer: StorageTransfer | None = None) -> None:
        self.transfer = transfer or HttpStorageTransfer()

    async def upload_artifact(
        self,
        file: UploadFile,
        request_credential: CredentialIssuer,
        kind: ArtifactKind | str,
        owner_id: str,
        version: int,
    ) -> UploadedArtifact:
        kind = ArtifactKind(kind)
        try:
            request = UploadRequest(
                file_name=file.name,
                content_type=file.content_type,
                file_size=file.size,
                owner_id=owner_id,
                version=version,
                kind=kind,
            )
            issued = await request_credential(request)
            await self.transfer(issued.upload_url, file)
        except Exception as exc:
            raise ArtifactUploadError(kind, describe_failure(exc)) from exc
        return UploadedArtifact(storage_key=issued.storage_key)

    async def upload_many(
        self,
        items: Sequence[tuple[UploadFile, int]],
        request_credential: CredentialIssuer,
        kind: ArtifactKind | str,
        owner_id: str,
        max_parallel: int | None = None,
    ) -> list[UploadedArtifact | ArtifactUploadError]:
        """Upload ``(file, version)`` pairs concurrently.

        Results come back in input order. A failed item yields its
        ``ArtifactUploadError`` in place and does not affect the others.
        Concurrency defaults to the ``max_parallel_uploads`` setting.
        """
        if max_parallel is None:
            max_parallel = get_settings().max_parallel_uploads
        semaphore = asyncio.Semaphore(max(1, max_parallel))

        async def _one(file: UploadFile, version: int) -> UploadedArtifact | ArtifactUploadError:
            async with semaphore:
                try:
                    return await self.upload_artifact(
                        file, request_credential, kind, owner_id, version
                    )
                except ArtifactUploadError as exc:
                    return exc

        return list(await asyncio.gather(*(_one(file, version) for file, version in items)))


async def upload_artifact(
    file: UploadFile,
    request_credential: CredentialIssuer,
    kind: ArtifactKind | str,
    owner_id: str,
    version: int,
    transfer: StorageTransfer | None = None,
) -> UploadedArtifact:
    coordinator = UploadCoordinator(transfer)
    return await coordinator.upload_artifact(file, request_credential, kind, owner_id, version)
