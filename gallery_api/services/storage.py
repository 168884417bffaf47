"""
Cloudinary storage adapter for gallery image uploads and removals.
A bucket maps to a Cloudinary folder and a storage key to the public ID
inside that folder.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional, Dict, Any

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import Request

from gallery_api.config import Settings
from gallery_api.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass
class StoredObject:
    """Where an uploaded object lives and how it is reached."""
    path: str
    public_url: str


def _public_id(key: str, bucket: str) -> str:
    # Cloudinary public IDs carry no file extension
    stem = key.rsplit(".", 1)[0] if "." in key else key
    return f"{bucket}/{stem}"


class CloudinaryStorage:
    """
    Object storage backed by Cloudinary.

    One instance is created at startup and shared by all requests; the
    underlying SDK holds no per-request state. Calls are made once, with no
    retries: any failure is raised as StorageError.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True  # Always use HTTPS for secure URLs
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryStorage":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
        )

    async def upload(self, content: bytes, key: str, bucket: str, content_type: str) -> StoredObject:
        """
        Upload a file under `key` in `bucket`.

        Args:
            content: File bytes
            key: Generated storage key (file name with extension)
            bucket: Folder the object is stored in
            content_type: Resolved MIME type of the file

        Returns:
            StoredObject: Stored public ID and its permanent HTTPS URL

        Raises:
            StorageError: If Cloudinary rejects the upload or is unreachable
        """
        public_id = _public_id(key, bucket)
        logger.info(
            f"Uploading to storage: key={key}, bucket={bucket}, "
            f"content_type={content_type}, size={len(content)}"
        )
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                content,
                public_id=public_id,
                resource_type="image",
                overwrite=False,
                context={"content_type": content_type},
            )
        except CloudinaryError as e:
            logger.error(f"Storage upload failed for {key}: {str(e)}")
            raise StorageError(f"Failed to upload image: {str(e)}") from e
        except Exception as e:
            logger.error(f"Unexpected error during image upload for {key}: {str(e)}", exc_info=True)
            raise StorageError(f"Failed to upload image: {str(e)}") from e

        logger.info(f"Successfully uploaded image: {result['public_id']}")
        return StoredObject(path=result["public_id"], public_url=result["secure_url"])

    async def remove(self, key: str, bucket: str) -> None:
        """
        Remove the object stored under `key` in `bucket`.

        An object that is already gone counts as removed.

        Raises:
            StorageError: If Cloudinary reports a failure
        """
        public_id = _public_id(key, bucket)
        try:
            result: Dict[str, Any] = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                invalidate=True,  # Invalidate CDN cache
                resource_type="image",
            )
        except CloudinaryError as e:
            logger.error(f"Storage delete failed for {public_id}: {str(e)}")
            raise StorageError(f"Failed to delete image: {str(e)}") from e
        except Exception as e:
            logger.error(f"Unexpected error during image deletion for {public_id}: {str(e)}", exc_info=True)
            raise StorageError(f"Failed to delete image: {str(e)}") from e

        if result.get("result") not in ("ok", "not found"):
            logger.warning(f"Unexpected storage delete result for {public_id}: {result}")
            raise StorageError(f"Failed to delete image: {result.get('result')}")

        logger.info(f"Successfully deleted image from storage: {public_id} (result: {result.get('result')})")

    def key_from_url(self, url: str, bucket: str) -> Optional[str]:
        """
        Recover the storage key from a public URL returned by `upload`.

        Cloudinary URLs look like
        https://res.cloudinary.com/{cloud}/image/upload/v{version}/{bucket}/{key}

        Returns:
            The key, or None when the URL does not point into `bucket`
        """
        match = re.search(r"/image/upload(?:/v\d+)?/(.+)$", url or "")
        if not match:
            return None
        path = match.group(1)
        prefix = f"{bucket}/"
        if not path.startswith(prefix):
            return None
        return path[len(prefix):]

    def is_configured(self) -> bool:
        """Check that all Cloudinary credentials are set."""
        for name, value in (
            ("CLOUDINARY_CLOUD_NAME", self.cloud_name),
            ("CLOUDINARY_API_KEY", self.api_key),
            ("CLOUDINARY_API_SECRET", self.api_secret),
        ):
            if not value:
                logger.warning(f"{name} not configured")
                return False
        return True


def get_storage(request: Request) -> CloudinaryStorage:
    """FastAPI dependency returning the storage adapter created at startup."""
    return request.app.state.storage
