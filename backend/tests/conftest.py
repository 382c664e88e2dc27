import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from lending_uploads.core.config import get_settings
from lending_uploads.db import session as db_session
from lending_uploads.services import storage as storage_service


def _reset_singletons() -> None:
    get_settings.cache_clear()
    db_session.reset_session_factory()
    storage_service.reset_storage_service()


@pytest.fixture(autouse=True)
def configure_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("LOCAL_STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("LOCAL_SIGNING_SECRET", "test-secret")
    monkeypatch.setenv("S3_ACCESS_KEY", "test")
    monkeypatch.setenv("S3_SECRET_KEY", "test")
    monkeypatch.setenv("S3_REGION", "us-east-1")
    monkeypatch.setenv("S3_BUCKET", "test-bucket")
    _reset_singletons()
    yield
    _reset_singletons()


@pytest_asyncio.fixture
async def app_instance():
    from lending_uploads.main import create_app

    app = create_app()
    # ASGITransport does not run lifespan events
    await db_session.create_tables()
    yield app
    await db_session.get_engine().dispose()


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def product(client):
    response = await client.post("/products/", json={"name": "Invoice financing"})
    assert response.status_code == 201
    return response.json()
