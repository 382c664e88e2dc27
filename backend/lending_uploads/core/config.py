from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    env: Literal["local", "prod", "test"] = Field(default="local", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    db_url: str = Field(
        default="sqlite+aiosqlite:///./lending_uploads.db",
        alias="DATABASE_URL",
    )

    storage_backend: Literal["s3", "local"] = Field(default="s3", alias="STORAGE_BACKEND")
    local_storage_dir: str = Field(default="./.storage", alias="LOCAL_STORAGE_DIR")
    local_signing_secret: str = Field(
        default="local-signing-secret-change-me",
        alias="LOCAL_SIGNING_SECRET",
    )

    s3_endpoint: HttpUrl | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_access_key: str = Field(default="change-me", alias="S3_ACCESS_KEY")
    s3_secret_key: str = Field(default="change-me", alias="S3_SECRET_KEY")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_bucket: str = Field(default="lending-uploads", alias="S3_BUCKET")

    upload_url_ttl: int = Field(default=15 * 60, alias="UPLOAD_URL_TTL")
    download_url_ttl: int = Field(default=60 * 60, alias="DOWNLOAD_URL_TTL")

    image_content_types: list[str] = Field(
        default=["image/png", "image/jpeg"],
        alias="IMAGE_CONTENT_TYPES",
    )
    template_content_types: list[str] = Field(
        default=["application/pdf"],
        alias="TEMPLATE_CONTENT_TYPES",
    )
    max_image_bytes: int = Field(default=10 * 1024 * 1024, alias="MAX_IMAGE_BYTES")
    max_template_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_TEMPLATE_BYTES")

    max_parallel_uploads: int = Field(default=3, alias="MAX_PARALLEL_UPLOADS")
    api_base_url: str = Field(default="http://localhost:8000", alias="API_BASE_URL")
    http_timeout: float = Field(default=60.0, alias="HTTP_TIMEOUT")


@lru_cache
def get_settings() -> Settings:
    return Settings()
