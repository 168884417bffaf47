"""Shared fixtures: an in-memory database per test and a fake storage backend."""
import io
import os

# Must be set before the application settings are loaded
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_KEY"] = "test-admin-key"

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from gallery_api.database import SQLITE_MEMORY_URL, build_engine, build_sessionmaker, create_tables, get_db
from gallery_api.exceptions import StorageError
from gallery_api.main import app
from gallery_api.services.storage import CloudinaryStorage, StoredObject, get_storage

API = "/api/v1"


class FakeStorage(CloudinaryStorage):
    """Keeps uploaded objects in memory and hands out Cloudinary-style URLs."""

    def __init__(self):
        super().__init__(cloud_name="demo", api_key="key", api_secret="secret")
        self.objects = {}
        self.removed = []
        self.fail_uploads = False
        self.fail_removals = False

    async def upload(self, content, key, bucket, content_type):
        if self.fail_uploads:
            raise StorageError("Failed to upload image: storage unavailable")
        path = f"{bucket}/{key}"
        self.objects[path] = (content, content_type)
        return StoredObject(
            path=path,
            public_url=f"https://res.cloudinary.com/demo/image/upload/v1700000000/{bucket}/{key}",
        )

    async def remove(self, key, bucket):
        if self.fail_removals:
            raise StorageError("Failed to delete image: storage unavailable")
        self.objects.pop(f"{bucket}/{key}", None)
        self.removed.append(key)


def make_png(width=1, height=1) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color="red").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def client(storage):
    engine = build_engine(SQLITE_MEMORY_URL)
    session_factory = build_sessionmaker(engine)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        test_client.portal.call(create_tables, engine)
        yield test_client
        test_client.portal.call(engine.dispose)

    app.dependency_overrides.clear()


@pytest.fixture
def upload(client, png_bytes):
    """Upload an image through the API and return the created record."""
    def _upload(title="Test", filename="test.png", content_type="image/png", content=None, **fields):
        response = client.post(
            f"{API}/gallery/images",
            files={"image": (filename, content if content is not None else png_bytes, content_type)},
            data={"title": title, **{key: str(value) for key, value in fields.items()}},
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _upload


@pytest.fixture
def create_category(client):
    def _create(name="Living Rooms", display_name="Living Rooms", **fields):
        response = client.post(
            f"{API}/admin/categories",
            json={"name": name, "display_name": display_name, **fields},
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
