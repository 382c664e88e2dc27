from collections.abc import AsyncGenerator
from urllib.parse import unquote

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from lending_uploads.db.session import get_session_factory
from lending_uploads.services.storage import (
    LOCAL_DOWNLOAD_SCHEME,
    LOCAL_UPLOAD_SCHEME,
    StorageService,
    get_storage_service,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session_factory = get_session_factory()
    async with session_factory() as session:
        yield session


def get_storage() -> StorageService:
    return get_storage_service()


def public_url(request: Request, url: str) -> str:
    """Translate ``local://`` presigned URLs into routable URLs on this app."""
    for scheme, route in (
        (LOCAL_UPLOAD_SCHEME, "upload_file"),
        (LOCAL_DOWNLOAD_SCHEME, "download_file"),
    ):
        if url.startswith(scheme):
            path, _, query = url.removeprefix(scheme).partition("?")
            resolved = str(request.url_for(route, object_path=unquote(path)))
            return f"{resolved}?{query}" if query else resolved
    return url
