import logging

from sqlalchemy.ext.asyncio import AsyncSession

from lending_uploads.core.artifacts import ArtifactKind, generate_asset_key, get_file_extension
from lending_uploads.core.config import Settings, get_settings
from lending_uploads.schemas import PresignedUpload, UploadUrlRequest
from lending_uploads.services.products import get_product, next_asset_version
from lending_uploads.services.storage import StorageService

logger = logging.getLogger(__name__)


class UploadValidationError(ValueError):
    """Raised when an upload request fails content type or size checks."""


def _limits_for(kind: ArtifactKind, settings: Settings) -> tuple[list[str], int]:
    if kind is ArtifactKind.IMAGE:
        return settings.image_content_types, settings.max_image_bytes
    return settings.template_content_types, settings.max_template_bytes


def validate_upload(kind: ArtifactKind, content_type: str, file_size: int | None) -> None:
    settings = get_settings()
    allowed, max_bytes = _limits_for(kind, settings)
    if content_type.lower() not in allowed:
        raise UploadValidationError(
            f"Invalid content type. Allowed types: {', '.join(allowed)}"
        )
    if file_size is not None and file_size > max_bytes:
        raise UploadValidationError(
            f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB"
        )


async def issue_upload_credential(
    session: AsyncSession,
    storage: StorageService,
    product_id: str,
    kind: ArtifactKind,
    payload: UploadUrlRequest,
) -> PresignedUpload:
    settings = get_settings()
    product = await get_product(session, product_id)
    validate_upload(kind, payload.content_type, payload.file_size)

    version = payload.version or await next_asset_version(session, product.id, kind)
    extension = get_file_extension(payload.file_name) or kind.default_extension
    key = generate_asset_key(product.id, version, extension)
    upload_url = storage.create_presigned_put(
        key,
        payload.content_type,
        expires_in=settings.upload_url_ttl,
    )
    logger.info(
        "Issued %s upload URL for product %s: key=%s version=%d",
        kind.value,
        product.id,
        key,
        version,
    )
    return PresignedUpload(
        upload_url=upload_url,
        storage_key=key,
        expires_in=settings.upload_url_ttl,
    )
