from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lending_uploads.api.deps import get_db, get_storage, public_url
from lending_uploads.core.artifacts import ArtifactKind
from lending_uploads.schemas import (
    AssetRead,
    AssetRegister,
    PresignedUpload,
    ProductCreate,
    ProductRead,
    UploadUrlRequest,
)
from lending_uploads.services import products as product_service
from lending_uploads.services import uploads as upload_service
from lending_uploads.services.storage import StorageService

router = APIRouter(prefix="/products", tags=["products"])


@router.post("/", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    session: AsyncSession = Depends(get_db),
) -> ProductRead:
    product = await product_service.create_product(session, payload.name)
    return ProductRead.model_validate(product)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: str,
    session: AsyncSession = Depends(get_db),
) -> ProductRead:
    try:
        product = await product_service.get_product(session, product_id)
    except product_service.ProductNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ProductRead.model_validate(product)


async def _issue(
    kind: ArtifactKind,
    product_id: str,
    payload: UploadUrlRequest,
    request: Request,
    session: AsyncSession,
    storage: StorageService,
) -> PresignedUpload:
    try:
        issued = await upload_service.issue_upload_credential(
            session, storage, product_id, kind, payload
        )
    except product_service.ProductNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except upload_service.UploadValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return issued.model_copy(update={"upload_url": public_url(request, issued.upload_url)})


@router.post("/{product_id}/upload-image-url", response_model=PresignedUpload)
async def request_image_upload_url(
    product_id: str,
    payload: UploadUrlRequest,
    request: Request,
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> PresignedUpload:
    return await _issue(ArtifactKind.IMAGE, product_id, payload, request, session, storage)


@router.post("/{product_id}/upload-template-url", response_model=PresignedUpload)
async def request_template_upload_url(
    product_id: str,
    payload: UploadUrlRequest,
    request: Request,
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> PresignedUpload:
    return await _issue(
        ArtifactKind.DOCUMENT_TEMPLATE, product_id, payload, request, session, storage
    )


@router.post(
    "/{product_id}/assets",
    response_model=AssetRead,
    status_code=status.HTTP_201_CREATED,
)
async def register_asset(
    product_id: str,
    payload: AssetRegister,
    session: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> AssetRead:
    try:
        asset = await product_service.register_asset(
            session,
            storage,
            product_id,
            payload.kind,
            payload.storage_key,
            payload.file_name,
        )
    except product_service.ProductNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except product_service.AssetConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except product_service.UploadedObjectMissingError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except product_service.AssetRegistrationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AssetRead.model_validate(asset)


@router.get("/{product_id}/assets", response_model=list[AssetRead])
async def list_assets(
    product_id: str,
    kind: ArtifactKind | None = None,
    session: AsyncSession = Depends(get_db),
) -> list[AssetRead]:
    try:
        await product_service.get_product(session, product_id)
    except product_service.ProductNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    assets = await product_service.list_assets(session, product_id, kind)
    return [AssetRead.model_validate(asset) for asset in assets]
