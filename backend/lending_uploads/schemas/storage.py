from pydantic import BaseModel, Field


class UploadUrlRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1)
    file_size: int | None = Field(default=None, gt=0)
    version: int | None = Field(default=None, ge=1)


class PresignedUpload(BaseModel):
    upload_url: str
    storage_key: str
    expires_in: int


class ObjectUrlRequest(BaseModel):
    storage_key: str = Field(..., min_length=1)
    file_name: str | None = None


class ViewUrlResponse(BaseModel):
    view_url: str
    expires_in: int


class DownloadResponse(BaseModel):
    download_url: str
    storage_key: str
    expires_in: int
