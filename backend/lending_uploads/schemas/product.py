from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lending_uploads.core.artifacts import ArtifactKind


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime


class AssetRegister(BaseModel):
    kind: ArtifactKind
    storage_key: str = Field(..., min_length=1, max_length=1024)
    file_name: str | None = Field(default=None, max_length=255)


class AssetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    kind: ArtifactKind
    storage_key: str
    file_name: str | None = None
    version: int
    created_at: datetime
