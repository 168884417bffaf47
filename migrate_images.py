#!/usr/bin/env python3
"""
Image Migration Script
Downloads gallery images still served from external URLs and re-uploads
them to the storage bucket, then points the records at the stored copies.
"""
import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import httpx

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent))

from gallery_api.config import settings
from gallery_api.database import AsyncSessionLocal, init_db
from gallery_api.models import GalleryImage
from gallery_api.repositories.gallery import GalleryRepository
from gallery_api.services.storage import CloudinaryStorage
from gallery_api.utils.storage import generate_thumbnail_url, resolve_mime_type

logger = logging.getLogger("migrate_images")


def migration_filename(url: str, image_id: int) -> str:
    """Storage key for a migrated image: gallery_{id}_{millis}.{ext}"""
    last_segment = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1] or "image"
    extension = last_segment.rsplit(".", 1)[1] if "." in last_segment else "jpg"
    return f"gallery_{image_id}_{int(time.time() * 1000)}.{extension}"


async def download_image(client: httpx.AsyncClient, url: str) -> Optional[bytes]:
    """Fetch an image, returning None when the download fails."""
    try:
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content
    except httpx.HTTPError as e:
        logger.error(f"Failed to download {url}: {str(e)}")
        return None


async def migrate_image(
    image: GalleryImage,
    repo: GalleryRepository,
    storage: CloudinaryStorage,
    client: httpx.AsyncClient,
    bucket: str,
) -> bool:
    """Move one image into storage. Returns True when it ends up stored."""
    logger.info(f"Processing: {image.title} (ID: {image.id}) from {image.image_url}")

    if storage.key_from_url(image.image_url, bucket):
        logger.info("Already in storage, skipping")
        return True

    content = await download_image(client, image.image_url)
    if content is None:
        return False

    key = migration_filename(image.image_url, image.id)
    stored = await storage.upload(content, key, bucket, resolve_mime_type(key))
    await repo.update_image(image.id, {
        "image_url": stored.public_url,
        "thumbnail_url": generate_thumbnail_url(stored.public_url),
    })
    logger.info(f"Migrated image {image.id} to {stored.public_url}")
    return True


async def migrate_images(
    repo: GalleryRepository,
    storage: CloudinaryStorage,
    client: httpx.AsyncClient,
    bucket: str,
) -> Tuple[int, int]:
    """
    Migrate every active image.

    Returns:
        (success_count, error_count)
    """
    images = await repo.list_images_to_migrate()
    logger.info(f"Found {len(images)} images to migrate")

    success_count = 0
    error_count = 0
    for image in images:
        try:
            migrated = await migrate_image(image, repo, storage, client, bucket)
        except Exception as e:
            logger.error(f"Failed to migrate image {image.id}: {str(e)}", exc_info=True)
            migrated = False

        if migrated:
            success_count += 1
        else:
            error_count += 1

    return success_count, error_count


async def run(bucket: str) -> int:
    await init_db()
    storage = CloudinaryStorage.from_settings(settings)
    if not storage.is_configured():
        logger.error("Cloudinary credentials are missing")
        return 1

    async with AsyncSessionLocal() as session, httpx.AsyncClient(timeout=30.0) as client:
        success_count, error_count = await migrate_images(GalleryRepository(session), storage, client, bucket)

    print("=" * 60)
    print(f"Migrated: {success_count}")
    print(f"Failed:   {error_count}")
    print("=" * 60)
    return 0 if error_count == 0 else 1


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Move externally hosted gallery images into storage")
    parser.add_argument("--bucket", default=settings.STORAGE_BUCKET, help="Target storage bucket")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    sys.exit(asyncio.run(run(args.bucket)))


if __name__ == "__main__":
    main()
