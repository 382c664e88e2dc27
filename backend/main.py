"""Upload a local file as a product image or document template.

Usage: python main.py PRODUCT_ID path/to/file.png --kind image
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from lending_uploads.client.credentials import ApiCredentialIssuer
from lending_uploads.client.models import UploadFile
from lending_uploads.client.transfer import HttpStorageTransfer
from lending_uploads.client.uploader import ArtifactUploadError, UploadCoordinator
from lending_uploads.core.artifacts import ArtifactKind
from lending_uploads.core.config import get_settings
from lending_uploads.core.logging_config import setup_logging

logger = logging.getLogger("lending_uploads.cli")


async def _next_version(client: httpx.AsyncClient, product_id: str, kind: ArtifactKind) -> int:
    response = await client.get(f"/products/{product_id}/assets", params={"kind": kind.value})
    response.raise_for_status()
    versions = [item["version"] for item in response.json()]
    return max(versions, default=0) + 1


async def run(product_id: str, path: Path, kind: ArtifactKind, version: int | None) -> int:
    settings = get_settings()
    file = UploadFile.from_path(path)

    async with httpx.AsyncClient(base_url=settings.api_base_url, timeout=settings.http_timeout) as client:
        if version is None:
            version = await _next_version(client, product_id, kind)

        coordinator = UploadCoordinator(HttpStorageTransfer(timeout=settings.http_timeout))
        try:
            uploaded = await coordinator.upload_artifact(
                file, ApiCredentialIssuer(client), kind, product_id, version
            )
        except ArtifactUploadError as exc:
            logger.error("%s", exc.message)
            return 1

        response = await client.post(
            f"/products/{product_id}/assets",
            json={"kind": kind.value, "storage_key": uploaded.storage_key, "file_name": file.name},
        )
        if not response.is_success:
            logger.error("Uploaded %s but registration failed: %s", uploaded.storage_key, response.text)
            return 1

    print(uploaded.storage_key)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Upload a product artifact")
    parser.add_argument("product_id", help="Owning product id")
    parser.add_argument("path", type=Path, help="File to upload")
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in ArtifactKind],
        default=ArtifactKind.IMAGE.value,
    )
    parser.add_argument("--version", type=int, default=None, help="Revision number (default: next)")
    args = parser.parse_args()

    setup_logging(get_settings().log_level)
    sys.exit(asyncio.run(run(args.product_id, args.path, ArtifactKind(args.kind), args.version)))


if __name__ == "__main__":
    main()
