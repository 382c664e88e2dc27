from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse

from lending_uploads.api.deps import get_storage, public_url
from lending_uploads.core.artifacts import ASSET_KEY_PREFIX
from lending_uploads.core.config import get_settings
from lending_uploads.schemas import DownloadResponse, ObjectUrlRequest, ViewUrlResponse
from lending_uploads.services.storage import (
    LocalStorageService,
    StorageService,
    StorageSignatureError,
)

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/view-url", response_model=ViewUrlResponse)
async def request_view_url(
    payload: ObjectUrlRequest,
    request: Request,
    storage: StorageService = Depends(get_storage),
) -> ViewUrlResponse:
    if not await storage.object_exists(payload.storage_key):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Object not found at key: {payload.storage_key}",
        )
    expires_in = get_settings().download_url_ttl
    view_url = storage.create_presigned_get(payload.storage_key, expires_in=expires_in, inline=True)
    return ViewUrlResponse(view_url=public_url(request, view_url), expires_in=expires_in)


@router.post("/download-url", response_model=DownloadResponse)
async def request_download_url(
    payload: ObjectUrlRequest,
    request: Request,
    storage: StorageService = Depends(get_storage),
) -> DownloadResponse:
    expires_in = get_settings().download_url_ttl
    download_url = storage.create_presigned_get(
        payload.storage_key,
        expires_in=expires_in,
        file_name=payload.file_name,
    )
    return DownloadResponse(
        download_url=public_url(request, download_url),
        storage_key=payload.storage_key,
        expires_in=expires_in,
    )


def _require_local(storage: StorageService) -> LocalStorageService:
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return storage


def _check_signature(
    storage: LocalStorageService,
    method: str,
    object_path: str,
    expires: int,
    signature: str,
) -> None:
    if not object_path.startswith(ASSET_KEY_PREFIX):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid object key")
    try:
        storage.verify_signature(method, object_path, expires, signature)
    except StorageSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc


@router.put("/upload/{object_path:path}", name="upload_file")
async def upload_file(
    object_path: str,
    expires: int,
    signature: str,
    request: Request,
    storage: StorageService = Depends(get_storage),
):
    local = _require_local(storage)
    _check_signature(local, "PUT", object_path, expires, signature)

    data = await request.body()
    try:
        await local.save_upload(object_path, data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return {"storage_key": object_path}


@router.get("/download/{object_path:path}", name="download_file")
async def download_file(
    object_path: str,
    expires: int,
    signature: str,
    storage: StorageService = Depends(get_storage),
):
    local = _require_local(storage)
    _check_signature(local, "GET", object_path, expires, signature)

    try:
        path = local.open_for_download(object_path)
    except (FileNotFoundError, ValueError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from None
    return FileResponse(path)
