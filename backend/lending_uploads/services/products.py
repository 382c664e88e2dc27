import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lending_uploads.core.artifacts import ArtifactKind, owner_prefix, parse_asset_key
from lending_uploads.models import Product, ProductAsset
from lending_uploads.services.storage import StorageService

logger = logging.getLogger(__name__)


class ProductNotFoundError(LookupError):
    """Raised when the owning product does not exist."""


class AssetRegistrationError(ValueError):
    """Raised when a storage key cannot be attached to a product."""


class AssetConflictError(AssetRegistrationError):
    """Raised when a storage key is already registered."""


class UploadedObjectMissingError(AssetRegistrationError):
    """Raised when the storage key has no uploaded object behind it."""


async def create_product(session: AsyncSession, name: str) -> Product:
    product = Product(name=name.strip())
    session.add(product)
    await session.commit()
    await session.refresh(product)
    return product


async def get_product(session: AsyncSession, product_id: str) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError("Product not found")
    return product


async def list_assets(
    session: AsyncSession,
    product_id: str,
    kind: ArtifactKind | None = None,
) -> list[ProductAsset]:
    stmt = select(ProductAsset).where(ProductAsset.product_id == product_id)
    if kind is not None:
        stmt = stmt.where(ProductAsset.kind == kind)
    stmt = stmt.order_by(ProductAsset.version.desc(), ProductAsset.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def next_asset_version(
    session: AsyncSession,
    product_id: str,
    kind: ArtifactKind,
) -> int:
    stmt = select(func.max(ProductAsset.version)).where(
        ProductAsset.product_id == product_id,
        ProductAsset.kind == kind,
    )
    result = await session.execute(stmt)
    current = result.scalar_one_or_none()
    return (current or 0) + 1


async def register_asset(
    session: AsyncSession,
    storage: StorageService,
    product_id: str,
    kind: ArtifactKind,
    storage_key: str,
    file_name: str | None = None,
) -> ProductAsset:
    product = await get_product(session, product_id)

    if not storage_key.startswith(owner_prefix(product.id)):
        raise AssetRegistrationError("Storage key does not belong to this product")
    parsed = parse_asset_key(storage_key)
    if parsed is None:
        raise AssetRegistrationError("Malformed storage key")

    existing = await session.execute(
        select(ProductAsset.id).where(ProductAsset.storage_key == storage_key)
    )
    if existing.scalar_one_or_none() is not None:
        raise AssetConflictError("Storage key is already registered")

    if not await storage.object_exists(storage_key):
        raise UploadedObjectMissingError("Uploaded object not found")

    asset = ProductAsset(
        product_id=product.id,
        kind=kind,
        storage_key=storage_key,
        file_name=file_name,
        version=parsed.version,
    )
    session.add(asset)
    try:
        await session.commit()
    except IntegrityError as exc:
        # concurrent registration of the same key
        await session.rollback()
        raise AssetConflictError("Storage key is already registered") from exc
    await session.refresh(asset)
    logger.info(
        "Registered %s asset %s for product %s (v%d)",
        kind.value,
        storage_key,
        product.id,
        parsed.version,
    )
    return asset
