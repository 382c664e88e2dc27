import asyncio
import hashlib
import hmac
import logging
import time
from pathlib import Path
from typing import Final
from urllib.parse import quote, urlencode

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from lending_uploads.core.config import get_settings

logger = logging.getLogger(__name__)

LOCAL_UPLOAD_SCHEME: Final[str] = "local://upload/"
LOCAL_DOWNLOAD_SCHEME: Final[str] = "local://download/"

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class StorageSignatureError(Exception):
    """Raised when a locally signed URL is expired or tampered with."""


class StorageService:
    """Default S3-compatible storage backend."""

    scheme: Final[str] = "s3"

    def __init__(self) -> None:
        self.settings = get_settings()
        session = boto3.session.Session()
        self.client = session.client(
            "s3",
            endpoint_url=str(self.settings.s3_endpoint) if self.settings.s3_endpoint else None,
            aws_access_key_id=self.settings.s3_access_key,
            aws_secret_access_key=self.settings.s3_secret_key,
            region_name=self.settings.s3_region,
            config=Config(signature_version="s3v4"),
        )
        self.bucket = self.settings.s3_bucket

    def create_presigned_put(
        self,
        key: str,
        content_type: str,
        expires_in: int = 900,
    ) -> str:
        return self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )

    def create_presigned_get(
        self,
        key: str,
        expires_in: int = 3600,
        file_name: str | None = None,
        inline: bool = False,
    ) -> str:
        params = {"Bucket": self.bucket, "Key": key}
        if inline:
            params["ResponseContentDisposition"] = "inline"
        elif file_name:
            params["ResponseContentDisposition"] = f'attachment; filename="{file_name}"'
        return self.client.generate_presigned_url(
            "get_object",
            Params=params,
            ExpiresIn=expires_in,
        )

    async def object_exists(self, key: str) -> bool:
        def _head() -> bool:
            try:
                self.client.head_object(Bucket=self.bucket, Key=key)
            except ClientError as exc:
                code = str(exc.response.get("Error", {}).get("Code", ""))
                if code in _MISSING_OBJECT_CODES:
                    return False
                raise
            return True

        return await asyncio.to_thread(_head)

    async def delete_object(self, key: str) -> None:
        def _delete() -> None:
            self.client.delete_object(Bucket=self.bucket, Key=key)

        await asyncio.to_thread(_delete)
        logger.info("Deleted storage object %s", key)


class LocalStorageService(StorageService):
    """Local filesystem storage intended for development use.

    Presigned URLs carry an expiry and an HMAC signature so the local upload
    and download routes can reject stale or forged requests the way S3 would.
    """

    scheme: Final[str] = "local"

    def __init__(self) -> None:  # type: ignore[override]
        self.settings = get_settings()
        self.base_path = Path(self.settings.local_storage_dir).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._secret = self.settings.local_signing_secret.encode("utf-8")

    def _key_path(self, key: str) -> Path:
        # Prevent directory traversal by resolving inside base path
        candidate = self.base_path.joinpath(*Path(key).parts).resolve()
        if not candidate.is_relative_to(self.base_path) or candidate == self.base_path:
            raise ValueError("Invalid storage key")
        return candidate

    def _sign(self, method: str, key: str, expires: int) -> str:
        message = f"{method}:{key}:{expires}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def _signed_url(self, prefix: str, method: str, key: str, expires_in: int) -> str:
        expires = int(time.time()) + expires_in
        query = urlencode({"expires": expires, "signature": self._sign(method, key, expires)})
        return f"{prefix}{quote(key)}?{query}"

    def verify_signature(self, method: str, key: str, expires: int, signature: str) -> None:
        expected = self._sign(method, key, expires)
        if not hmac.compare_digest(expected, signature):
            raise StorageSignatureError("Signature does not match")
        if expires < int(time.time()):
            raise StorageSignatureError("Request has expired")

    def create_presigned_put(
        self,
        key: str,
        content_type: str,
        expires_in: int = 900,
    ) -> str:  # type: ignore[override]
        # Returns a local scheme that routers translate into real URLs.
        return self._signed_url(LOCAL_UPLOAD_SCHEME, "PUT", key, expires_in)

    def create_presigned_get(
        self,
        key: str,
        expires_in: int = 3600,
        file_name: str | None = None,
        inline: bool = False,
    ) -> str:  # type: ignore[override]
        return self._signed_url(LOCAL_DOWNLOAD_SCHEME, "GET", key, expires_in)

    async def object_exists(self, key: str) -> bool:  # type: ignore[override]
        try:
            path = self._key_path(key)
        except ValueError:
            return False
        return path.is_file()

    async def delete_object(self, key: str) -> None:  # type: ignore[override]
        path = self._key_path(key)
        await asyncio.to_thread(path.unlink, True)

    async def save_upload(self, key: str, data: bytes) -> None:
        target = self._key_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)

        def _write() -> None:
            target.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.debug("Stored %d bytes at %s", len(data), key)

    def open_for_download(self, key: str) -> Path:
        path = self._key_path(key)
        if not path.is_file():
            raise FileNotFoundError(key)
        return path


_storage_service: StorageService | LocalStorageService | None = None


def get_storage_service() -> StorageService | LocalStorageService:
    global _storage_service
    if _storage_service is None:
        settings = get_settings()
        if settings.storage_backend == "local":
            _storage_service = LocalStorageService()
        else:
            _storage_service = StorageService()
    return _storage_service


def reset_storage_service() -> None:
    global _storage_service
    _storage_service = None
