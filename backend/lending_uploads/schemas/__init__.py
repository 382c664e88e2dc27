from lending_uploads.schemas.product import AssetRead, AssetRegister, ProductCreate, ProductRead
from lending_uploads.schemas.storage import (
    DownloadResponse,
    ObjectUrlRequest,
    PresignedUpload,
    UploadUrlRequest,
    ViewUrlResponse,
)

__all__ = [
    "ProductCreate",
    "ProductRead",
    "AssetRegister",
    "AssetRead",
    "UploadUrlRequest",
    "PresignedUpload",
    "ObjectUrlRequest",
    "ViewUrlResponse",
    "DownloadResponse",
]
