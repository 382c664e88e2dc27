import logging

import httpx

from lending_uploads.client.models import UploadFile

logger = logging.getLogger(__name__)


class StorageTransferError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class HttpStorageTransfer:
    """Single PUT of the whole payload to a presigned URL. No retries."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 60.0) -> None:
        self._client = client
        self._timeout = timeout

    async def __call__(self, upload_url: str, file: UploadFile) -> None:
        if self._client is not None:
            await self._put(self._client, upload_url, file)
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            await self._put(client, upload_url, file)

    async def _put(self, client: httpx.AsyncClient, upload_url: str, file: UploadFile) -> None:
        try:
            response = await client.put(
                upload_url,
                content=file.data,
                headers={"Content-Type": file.content_type},
            )
        except httpx.HTTPError as exc:
            raise StorageTransferError(str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            reason = response.reason_phrase or str(response.status_code)
            raise StorageTransferError(f"Upload failed: {reason}", response.status_code)
        logger.debug("Transferred %d bytes for %s", file.size, file.name)
