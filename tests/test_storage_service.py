from unittest.mock import patch

import pytest
from cloudinary.exceptions import Error as CloudinaryError

from gallery_api.exceptions import StorageError
from gallery_api.services.storage import CloudinaryStorage


@pytest.fixture
def cloud_storage():
    return CloudinaryStorage(cloud_name="demo", api_key="key", api_secret="secret")


async def test_upload_returns_stored_object(cloud_storage):
    result = {
        "public_id": "gallery-images/gallery_1_abc",
        "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/gallery-images/gallery_1_abc.png",
    }
    with patch("cloudinary.uploader.upload", return_value=result) as upload:
        stored = await cloud_storage.upload(b"data", "gallery_1_abc.png", "gallery-images", "image/png")

    assert stored.path == "gallery-images/gallery_1_abc"
    assert stored.public_url == result["secure_url"]
    args, kwargs = upload.call_args
    assert args[0] == b"data"
    assert kwargs["public_id"] == "gallery-images/gallery_1_abc"


async def test_upload_failure_is_not_retried(cloud_storage):
    with patch("cloudinary.uploader.upload", side_effect=CloudinaryError("quota exceeded")) as upload:
        with pytest.raises(StorageError, match="quota exceeded"):
            await cloud_storage.upload(b"data", "a.png", "gallery-images", "image/png")

    assert upload.call_count == 1


async def test_upload_unexpected_error_becomes_storage_error(cloud_storage):
    with patch("cloudinary.uploader.upload", side_effect=ConnectionError("unreachable")):
        with pytest.raises(StorageError, match="unreachable"):
            await cloud_storage.upload(b"data", "a.png", "gallery-images", "image/png")


@pytest.mark.parametrize("outcome", ["ok", "not found"])
async def test_remove_accepts_ok_and_missing(cloud_storage, outcome):
    with patch("cloudinary.uploader.destroy", return_value={"result": outcome}) as destroy:
        await cloud_storage.remove("gallery_1_abc.png", "gallery-images")

    assert destroy.call_args[0][0] == "gallery-images/gallery_1_abc"


async def test_remove_failure(cloud_storage):
    with patch("cloudinary.uploader.destroy", return_value={"result": "error"}):
        with pytest.raises(StorageError):
            await cloud_storage.remove("a.png", "gallery-images")

    with patch("cloudinary.uploader.destroy", side_effect=CloudinaryError("denied")) as destroy:
        with pytest.raises(StorageError, match="denied"):
            await cloud_storage.remove("a.png", "gallery-images")
    assert destroy.call_count == 1


def test_key_from_url(cloud_storage):
    url = "https://res.cloudinary.com/demo/image/upload/v1700000000/gallery-images/gallery_1_abc.png"
    assert cloud_storage.key_from_url(url, "gallery-images") == "gallery_1_abc.png"
    assert cloud_storage.key_from_url(url, "other-bucket") is None
    assert cloud_storage.key_from_url("https://images.unsplash.com/photo-1", "gallery-images") is None


def test_is_configured():
    assert CloudinaryStorage("demo", "key", "secret").is_configured()
    assert not CloudinaryStorage("demo", "", "secret").is_configured()
