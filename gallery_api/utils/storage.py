"""
Upload helpers: MIME type resolution, upload validation, storage key
generation and metadata extraction.
All functions here are pure and do not touch the storage backend.
"""
import re
import secrets
import string
import time
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10 MiB

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "svg": "image/svg+xml",
}
DEFAULT_MIME_TYPE = "image/jpeg"

ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/bmp",
    "image/tiff",
    "image/svg+xml",
]
ALLOWED_EXTENSIONS = ["jpg", "jpeg", "png", "webp", "gif", "bmp", "tiff", "svg"]

_KEY_ALPHABET = string.ascii_lowercase + string.digits
_KEY_RANDOM_LENGTH = 13


@dataclass
class UploadCandidate:
    """A file received in a request, before it is stored."""
    content: bytes
    filename: str
    content_type: str
    size: int


@dataclass
class UploadValidation:
    """
    Outcome of `validate_upload`.
    `reason` is "invalid_type" or "too_large" when the file is rejected.
    """
    ok: bool
    reason: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def accepted(cls) -> "UploadValidation":
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: str, message: str) -> "UploadValidation":
        return cls(ok=False, reason=reason, message=message)


def file_extension(filename: str) -> str:
    """Lower-cased text after the last dot, or "" when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.lower().rsplit(".", 1)[1]


def resolve_mime_type(filename: str) -> str:
    """
    Map a filename's extension to a content type.

    Args:
        filename: File name, any case

    Returns:
        str: Content type, image/jpeg when the extension is unknown or missing
    """
    return MIME_TYPES.get(file_extension(filename), DEFAULT_MIME_TYPE)


def correct_mime_type(candidate: UploadCandidate) -> UploadCandidate:
    """
    Replace a text/* content type with the one implied by the extension.
    Some clients report images as text/plain.
    """
    declared = candidate.content_type or ""
    extension = file_extension(candidate.filename)
    if declared.startswith("text/") and extension in MIME_TYPES:
        corrected = MIME_TYPES[extension]
        logger.info(f"Fixing MIME type from '{declared}' to '{corrected}' based on extension")
        candidate.content_type = corrected
    return candidate


def validate_upload(candidate: UploadCandidate, max_size: int = MAX_UPLOAD_SIZE) -> UploadValidation:
    """
    Check an upload against the type allow-lists and the size ceiling.

    The type is accepted when either the declared content type or the
    filename extension is allowed; it is rejected only if both fail.

    Args:
        candidate: File to check
        max_size: Largest accepted size in bytes

    Returns:
        UploadValidation: accepted, or rejected with a reason and message
    """
    extension = file_extension(candidate.filename)
    has_valid_mime_type = candidate.content_type in ALLOWED_MIME_TYPES
    has_valid_extension = extension in ALLOWED_EXTENSIONS

    logger.debug(
        f"Validating upload {candidate.filename!r}: type={candidate.content_type}, "
        f"extension={extension}, size={candidate.size}"
    )

    if not (has_valid_mime_type or has_valid_extension):
        return UploadValidation.rejected(
            "invalid_type",
            f'Invalid file type. Detected: "{candidate.content_type}" with extension ".{extension}". '
            "Only JPEG, PNG, WebP, GIF, BMP, TIFF, and SVG images are allowed.",
        )

    if candidate.size > max_size:
        return UploadValidation.rejected(
            "too_large",
            f"File size too large: {candidate.size / 1024 / 1024:.2f}MB. "
            f"Maximum {max_size / 1024 / 1024:.0f}MB allowed.",
        )

    return UploadValidation.accepted()


def generate_filename(original_name: str, prefix: str = "gallery") -> str:
    """
    Build a storage key: {prefix}_{unix millis}_{13 random chars}.{extension}

    Nothing checks the key against existing objects; the random part keeps
    collisions between concurrent uploads negligible.
    """
    timestamp = int(time.time() * 1000)
    random_part = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(_KEY_RANDOM_LENGTH))
    key = f"{prefix}_{timestamp}_{random_part}"
    if original_name and "." in original_name:
        key = f"{key}.{original_name.rsplit('.', 1)[1]}"
    return key


def slugify(name: str) -> str:
    """Lower-case the name and replace whitespace runs with hyphens."""
    return re.sub(r"\s+", "-", name.lower())


def extract_metadata(candidate: UploadCandidate) -> Dict[str, Any]:
    """Metadata stored alongside an uploaded image."""
    return {
        "originalName": candidate.filename,
        "size": candidate.size,
        "mimeType": candidate.content_type,
        "uploadedAt": datetime.now(timezone.utc).isoformat(),
    }


def generate_thumbnail_url(image_url: str, width: int = 400, height: int = 300) -> str:
    """
    Thumbnail URL for an image.
    Only Unsplash URLs are resized (via query parameters); stored images
    use the original URL.
    """
    if "unsplash.com" in image_url:
        return f"{image_url}?w={width}&h={height}&fit=crop"
    return image_url
