import re

import pytest

from gallery_api.utils.storage import (
    MAX_UPLOAD_SIZE,
    UploadCandidate,
    correct_mime_type,
    extract_metadata,
    file_extension,
    generate_filename,
    generate_thumbnail_url,
    resolve_mime_type,
    slugify,
    validate_upload,
)


def candidate(filename="photo.png", content_type="image/png", size=1024):
    return UploadCandidate(content=b"", filename=filename, content_type=content_type, size=size)


@pytest.mark.parametrize("filename, expected", [
    ("photo.jpg", "image/jpeg"),
    ("photo.JPEG", "image/jpeg"),
    ("PHOTO.PNG", "image/png"),
    ("anim.gif", "image/gif"),
    ("scan.tif", "image/tiff"),
    ("scan.tiff", "image/tiff"),
    ("logo.svg", "image/svg+xml"),
    ("pic.webp", "image/webp"),
    ("old.bmp", "image/bmp"),
    ("archive.tar.png", "image/png"),
    ("noext", "image/jpeg"),
    ("document.pdf", "image/jpeg"),
    ("", "image/jpeg"),
])
def test_resolve_mime_type(filename, expected):
    assert resolve_mime_type(filename) == expected


def test_file_extension_uses_last_dot():
    assert file_extension("a.b.C") == "c"
    assert file_extension("noext") == ""


class TestValidateUpload:
    def test_accepts_allowed_type(self):
        assert validate_upload(candidate()).ok

    def test_accepts_misreported_type_with_image_extension(self):
        result = validate_upload(candidate(filename="a.png", content_type="text/plain"))
        assert result.ok

    def test_accepts_allowed_type_with_unknown_extension(self):
        # Either signal is enough
        assert validate_upload(candidate(filename="a.exe", content_type="image/png")).ok

    def test_rejects_when_both_signals_fail(self):
        result = validate_upload(candidate(filename="a.exe", content_type="application/octet-stream"))
        assert not result.ok
        assert result.reason == "invalid_type"
        assert "application/octet-stream" in result.message
        assert ".exe" in result.message

    def test_rejects_oversized_file(self):
        result = validate_upload(candidate(size=MAX_UPLOAD_SIZE + 1))
        assert not result.ok
        assert result.reason == "too_large"
        assert "10MB" in result.message

    def test_rejects_oversized_file_even_with_misreported_type(self):
        result = validate_upload(candidate(filename="a.jpg", content_type="text/plain", size=MAX_UPLOAD_SIZE + 1))
        assert result.reason == "too_large"

    def test_accepts_file_at_limit(self):
        assert validate_upload(candidate(size=MAX_UPLOAD_SIZE)).ok

    def test_custom_limit(self):
        assert validate_upload(candidate(size=11), max_size=10).reason == "too_large"


def test_correct_mime_type_replaces_text_type():
    fixed = correct_mime_type(candidate(filename="a.webp", content_type="text/plain"))
    assert fixed.content_type == "image/webp"


def test_correct_mime_type_keeps_other_types():
    assert correct_mime_type(candidate(filename="a.webp", content_type="image/png")).content_type == "image/png"
    assert correct_mime_type(candidate(filename="a.txt", content_type="text/plain")).content_type == "text/plain"


class TestGenerateFilename:
    def test_format(self):
        key = generate_filename("Holiday Photo.JPG")
        assert re.fullmatch(r"gallery_\d{13}_[a-z0-9]{13}\.JPG", key)

    def test_prefix(self):
        assert generate_filename("a.png", prefix="thumb").startswith("thumb_")

    def test_without_extension(self):
        assert re.fullmatch(r"gallery_\d+_[a-z0-9]{13}", generate_filename("noext"))

    def test_keys_are_unique(self):
        keys = {generate_filename("same.png") for _ in range(10_000)}
        assert len(keys) == 10_000


@pytest.mark.parametrize("name, expected", [
    ("Living Rooms", "living-rooms"),
    ("Bay  Windows", "bay-windows"),
    ("already-slug", "already-slug"),
    ("Tabs\tAnd\nLines", "tabs-and-lines"),
    ("", ""),
])
def test_slugify(name, expected):
    assert slugify(name) == expected


@pytest.mark.parametrize("name", ["Living Rooms", " Padded Name ", "MiXeD\t\tcase", "ÄÖÜ Straße", "a - b"])
def test_slugify_is_idempotent(name):
    assert slugify(slugify(name)) == slugify(name)


def test_extract_metadata():
    metadata = extract_metadata(candidate(filename="a.png", size=2048))
    assert metadata["originalName"] == "a.png"
    assert metadata["size"] == 2048
    assert metadata["mimeType"] == "image/png"
    assert metadata["uploadedAt"].endswith("+00:00")


def test_thumbnail_url():
    assert generate_thumbnail_url("https://images.unsplash.com/photo-1") == (
        "https://images.unsplash.com/photo-1?w=400&h=300&fit=crop"
    )
    stored = "https://res.cloudinary.com/demo/image/upload/v1/gallery-images/a.png"
    assert generate_thumbnail_url(stored) == stored
