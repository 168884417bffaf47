"""
Shape database rows into the JSON returned by the API.
"""
from typing import List, Dict, Any, Iterable, Tuple

from gallery_api.models import GalleryImage, GalleryCategory
from gallery_api.schemas import GalleryImageResponse, GalleryCategoryResponse
from gallery_api.utils.storage import MAX_UPLOAD_SIZE

ALL_CATEGORIES_ENTRY = {"id": "all", "name": "All Projects"}

# Types reported by the storage usage summary
STORAGE_ALLOWED_TYPES = ["image/jpg", "image/jpeg", "image/png", "image/webp"]


def map_image(image: GalleryImage) -> Dict[str, Any]:
    """Image row to response dict, with the category reduced to id, name and display_name."""
    return GalleryImageResponse.model_validate(image).model_dump(mode="json")


def map_images(images: Iterable[GalleryImage]) -> List[Dict[str, Any]]:
    return [map_image(image) for image in images]


def map_category(category: GalleryCategory) -> Dict[str, Any]:
    return GalleryCategoryResponse.model_validate(category).model_dump(mode="json")


def map_category_counts(rows: Iterable[Tuple[GalleryCategory, int]]) -> List[Dict[str, Any]]:
    """
    Category filter entries for the public gallery.

    The first entry is a synthetic "all" whose count is the sum of the
    per-category counts; each category follows keyed by its slug.
    """
    entries = [
        {"id": category.name, "name": category.display_name, "count": count or 0}
        for category, count in rows
    ]
    total = sum(entry["count"] for entry in entries)
    return [{**ALL_CATEGORIES_ENTRY, "count": total}] + entries


def map_storage_usage(metadata_rows: Iterable[Dict[str, Any]], bucket: str) -> Dict[str, Any]:
    """
    Storage usage computed from the `size` recorded in image metadata.
    Rows without a size are not counted.
    """
    total_size = 0
    file_count = 0
    for metadata in metadata_rows:
        size = metadata.get("size") if isinstance(metadata, dict) else None
        if size:
            total_size += size
            file_count += 1

    return {
        "totalFiles": file_count,
        "totalSize": total_size,
        "totalSizeFormatted": f"{total_size / (1024 * 1024):.2f} MB",
        "bucketName": bucket,
        "maxFileSize": MAX_UPLOAD_SIZE,
        "allowedTypes": STORAGE_ALLOWED_TYPES,
    }
