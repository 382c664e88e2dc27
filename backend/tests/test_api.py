import asyncio

import pytest

from lending_uploads.services.storage import get_storage_service

PNG = b"\x89PNG\r\n\x1a\nfake"


async def _presign(client, product_id, endpoint="upload-image-url", **overrides):
    body = {"file_name": "logo.png", "content_type": "image/png", "file_size": len(PNG)}
    body.update(overrides)
    return await client.post(f"/products/{product_id}/{endpoint}", json=body)


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_product_create_and_read(client, product):
    response = await client.get(f"/products/{product['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Invoice financing"

    missing = await client.get("/products/does-not-exist")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Product not found"


@pytest.mark.asyncio
async def test_image_upload_url(client, product):
    response = await _presign(client, product["id"], version=7)
    assert response.status_code == 200
    data = response.json()

    assert data["storage_key"].startswith(f"products/{product['id']}/")
    assert "-v7-" in data["storage_key"]
    assert data["storage_key"].endswith(".png")
    assert data["upload_url"].startswith(f"http://testserver/files/upload/{data['storage_key']}?")
    assert "signature=" in data["upload_url"]
    assert data["expires_in"] == 900


@pytest.mark.asyncio
async def test_template_upload_url_defaults_extension(client, product):
    response = await _presign(
        client,
        product["id"],
        endpoint="upload-template-url",
        file_name="terms",
        content_type="application/pdf",
    )
    assert response.status_code == 200
    assert "-v1-" in response.json()["storage_key"]
    assert response.json()["storage_key"].endswith(".pdf")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("endpoint", "overrides", "detail"),
    [
        (
            "upload-image-url",
            {"content_type": "image/gif"},
            "Invalid content type. Allowed types: image/png, image/jpeg",
        ),
        (
            "upload-image-url",
            {"file_size": 10 * 1024 * 1024 + 1},
            "File too large. Maximum size: 10MB",
        ),
        (
            "upload-template-url",
            {"content_type": "image/png"},
            "Invalid content type. Allowed types: application/pdf",
        ),
        (
            "upload-template-url",
            {"content_type": "application/pdf", "file_size": 5 * 1024 * 1024 + 1},
            "File too large. Maximum size: 5MB",
        ),
    ],
)
async def test_upload_url_validation(client, product, endpoint, overrides, detail):
    response = await _presign(client, product["id"], endpoint=endpoint, **overrides)
    assert response.status_code == 400
    assert response.json()["detail"] == detail


@pytest.mark.asyncio
async def test_upload_url_unknown_product(client):
    response = await _presign(client, "missing-product")
    assert response.status_code == 404
    assert response.json()["detail"] == "Product not found"


@pytest.mark.asyncio
async def test_upload_register_and_version_bump(client, product):
    product_id = product["id"]
    issued = (await _presign(client, product_id)).json()
    assert "-v1-" in issued["storage_key"]

    put = await client.put(issued["upload_url"], content=PNG, headers={"Content-Type": "image/png"})
    assert put.status_code == 200
    assert put.json() == {"storage_key": issued["storage_key"]}

    register = await client.post(
        f"/products/{product_id}/assets",
        json={"kind": "image", "storage_key": issued["storage_key"], "file_name": "logo.png"},
    )
    assert register.status_code == 201
    asset = register.json()
    assert asset["version"] == 1
    assert asset["kind"] == "image"

    duplicate = await client.post(
        f"/products/{product_id}/assets",
        json={"kind": "image", "storage_key": issued["storage_key"]},
    )
    assert duplicate.status_code == 409

    # Server derives the next revision when the caller omits it
    next_issued = (await _presign(client, product_id)).json()
    assert "-v2-" in next_issued["storage_key"]

    listing = await client.get(f"/products/{product_id}/assets", params={"kind": "image"})
    assert listing.status_code == 200
    assert [item["storage_key"] for item in listing.json()] == [issued["storage_key"]]

    templates = await client.get(f"/products/{product_id}/assets", params={"kind": "document-template"})
    assert templates.json() == []


@pytest.mark.asyncio
async def test_register_rejects_unuploaded_and_foreign_keys(client, product):
    product_id = product["id"]
    issued = (await _presign(client, product_id)).json()

    not_uploaded = await client.post(
        f"/products/{product_id}/assets",
        json={"kind": "image", "storage_key": issued["storage_key"]},
    )
    assert not_uploaded.status_code == 404
    assert not_uploaded.json()["detail"] == "Uploaded object not found"

    other = (await client.post("/products/", json={"name": "Other"})).json()
    foreign = await client.post(
        f"/products/{other['id']}/assets",
        json={"kind": "image", "storage_key": issued["storage_key"]},
    )
    assert foreign.status_code == 400
    assert foreign.json()["detail"] == "Storage key does not belong to this product"


@pytest.mark.asyncio
async def test_local_upload_rejects_bad_signatures(client, product):
    issued = (await _presign(client, product["id"])).json()

    tampered = issued["upload_url"].replace("signature=", "signature=0")
    response = await client.put(tampered, content=PNG)
    assert response.status_code == 403
    assert response.json()["detail"] == "Signature does not match"

    storage = get_storage_service()
    expired = storage.create_presigned_put(issued["storage_key"], "image/png", expires_in=-60)
    path = expired.removeprefix("local://upload/")
    response = await client.put(f"/files/upload/{path}", content=PNG)
    assert response.status_code == 403
    assert response.json()["detail"] == "Request has expired"


@pytest.mark.asyncio
async def test_view_and_download_urls(client, product):
    issued = (await _presign(client, product["id"])).json()

    missing = await client.post("/files/view-url", json={"storage_key": issued["storage_key"]})
    assert missing.status_code == 404

    await client.put(issued["upload_url"], content=PNG)

    view = await client.post("/files/view-url", json={"storage_key": issued["storage_key"]})
    assert view.status_code == 200
    assert view.json()["expires_in"] == 3600
    fetched = await client.get(view.json()["view_url"])
    assert fetched.status_code == 200
    assert fetched.content == PNG

    download = await client.post(
        "/files/download-url",
        json={"storage_key": issued["storage_key"], "file_name": "logo.png"},
    )
    assert download.status_code == 200
    assert download.json()["storage_key"] == issued["storage_key"]
    assert download.json()["download_url"].startswith("http://testserver/files/download/")


@pytest.mark.asyncio
async def test_concurrent_registration_of_same_key(client, product):
    product_id = product["id"]
    issued = (await _presign(client, product_id)).json()
    await client.put(issued["upload_url"], content=PNG)

    responses = await asyncio.gather(
        *(
            client.post(
                f"/products/{product_id}/assets",
                json={"kind": "image", "storage_key": issued["storage_key"]},
            )
            for _ in range(4)
        )
    )

    assert sorted(response.status_code for response in responses) == [201, 409, 409, 409]
    for response in responses:
        if response.status_code == 409:
            assert response.json()["detail"] == "Storage key is already registered"

    listing = await client.get(f"/products/{product_id}/assets")
    assert len(listing.json()) == 1
