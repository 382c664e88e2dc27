import pytest

from lending_uploads.client.credentials import ApiCredentialIssuer
from lending_uploads.client.models import UploadFile
from lending_uploads.client.transfer import HttpStorageTransfer
from lending_uploads.client.uploader import ArtifactUploadError, UploadCoordinator
from lending_uploads.core.artifacts import ArtifactKind
from lending_uploads.services.storage import get_storage_service


@pytest.mark.asyncio
async def test_upload_then_register(client, product):
    file = UploadFile(name="terms.pdf", content_type="application/pdf", data=b"%PDF-1.7 body")
    coordinator = UploadCoordinator(HttpStorageTransfer(client))

    uploaded = await coordinator.upload_artifact(
        file, ApiCredentialIssuer(client), ArtifactKind.DOCUMENT_TEMPLATE, product["id"], 4
    )

    assert "-v4-" in uploaded.storage_key
    storage = get_storage_service()
    assert storage.open_for_download(uploaded.storage_key).read_bytes() == b"%PDF-1.7 body"

    register = await client.post(
        f"/products/{product['id']}/assets",
        json={
            "kind": "document-template",
            "storage_key": uploaded.storage_key,
            "file_name": file.name,
        },
    )
    assert register.status_code == 201
    assert register.json()["version"] == 4


@pytest.mark.asyncio
async def test_backend_rejection_is_surfaced(client, product, tmp_path):
    file = UploadFile(name="anim.gif", content_type="image/gif", data=b"GIF89a")
    coordinator = UploadCoordinator(HttpStorageTransfer(client))

    with pytest.raises(ArtifactUploadError) as exc_info:
        await coordinator.upload_artifact(
            file, ApiCredentialIssuer(client), ArtifactKind.IMAGE, product["id"], 1
        )

    assert exc_info.value.message == (
        "Image upload failed: Invalid content type. Allowed types: image/png, image/jpeg"
    )
    assert not any((tmp_path / "storage").rglob("*.gif"))


@pytest.mark.asyncio
async def test_rejected_transfer_returns_no_key(client, product):
    issuer = ApiCredentialIssuer(client)

    async def tampering_issuer(request):
        issued = await issuer(request)
        return issued.model_copy(
            update={"upload_url": issued.upload_url.replace("signature=", "signature=f")}
        )

    file = UploadFile(name="logo.png", content_type="image/png", data=b"\x89PNG")
    coordinator = UploadCoordinator(HttpStorageTransfer(client))

    with pytest.raises(ArtifactUploadError) as exc_info:
        await coordinator.upload_artifact(file, tampering_issuer, ArtifactKind.IMAGE, product["id"], 1)

    assert exc_info.value.message == "Image upload failed: Upload failed: Forbidden"
