import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from lending_uploads.client.models import UploadRequest
from lending_uploads.schemas import PresignedUpload

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to request upload URL"


class ApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return DEFAULT_ERROR_MESSAGE
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list) and detail:
        # FastAPI validation errors
        return "; ".join(
            str(item.get("msg", item)) if isinstance(item, dict) else str(item)
            for item in detail
        )
    return DEFAULT_ERROR_MESSAGE


class ApiCredentialIssuer:
    """Requests presigned upload URLs from the lending uploads API."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def __call__(self, request: UploadRequest) -> PresignedUpload:
        return await self.issue_credential(request)

    async def issue_credential(self, request: UploadRequest) -> PresignedUpload:
        endpoint = f"/products/{quote(request.owner_id, safe='')}/{request.kind.upload_path}"
        try:
            response = await self._client.post(endpoint, json=request.to_payload())
        except httpx.HTTPError as exc:
            raise ApiError(str(exc) or DEFAULT_ERROR_MESSAGE) from exc

        if not response.is_success:
            raise ApiError(_error_message(response), response.status_code)

        try:
            issued = PresignedUpload.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ApiError("Malformed upload URL response", response.status_code) from exc
        logger.debug("Received upload URL for %s", issued.storage_key)
        return issued
