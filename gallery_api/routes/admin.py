"""
Admin API routes.
All endpoints require the admin key (enforced in production).
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging
import platform
import time

from gallery_api.config import settings
from gallery_api.exceptions import GalleryError, BackendError, NotFoundError, ValidationError
from gallery_api.mappers import map_category, map_images, map_image, map_storage_usage
from gallery_api.repositories.gallery import GalleryRepository, get_gallery_repository
from gallery_api.schemas import (
    IMAGE_STATUSES,
    CategoryCreate,
    CategoryUpdate,
    ImageFeaturedUpdate,
    ImageFilterParams,
    ImageStatusUpdate,
)
from gallery_api.utils.auth import require_admin
from gallery_api.utils.storage import slugify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

STARTED_AT = time.monotonic()

RECENT_IMAGES_LIMIT = 5


@router.get("/dashboard")
async def get_dashboard(repo: GalleryRepository = Depends(get_gallery_repository)):
    """
    Get admin dashboard data: stats, recent images, categories with counts
    and runtime information.
    """
    try:
        stats = await repo.get_stats()
        recent_images = await repo.list_images(ImageFilterParams(limit=RECENT_IMAGES_LIMIT))
        categories = await repo.list_categories_with_counts()
    except Exception as e:
        logger.error(f"Error fetching admin dashboard: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to fetch dashboard: {str(e)}")

    return {
        "success": True,
        "data": {
            "stats": stats,
            "recentImages": map_images(recent_images),
            "categories": [
                {**map_category(category), "count": count}
                for category, count in categories
            ],
            "systemInfo": {
                "pythonVersion": platform.python_version(),
                "environment": settings.ENVIRONMENT,
                "uptime": time.monotonic() - STARTED_AT,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        },
    }


@router.get("/images")
async def get_admin_images(
    status_filter: str = Query("all", alias="status"),
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """
    Get images of any status, newest first.

    Args:
        status_filter: active, inactive, draft or all
        limit: Page size
        offset: Index of the first image; pages are 50 images when no limit is given
    """
    if status_filter != "all" and status_filter not in IMAGE_STATUSES:
        raise ValidationError("Invalid status. Must be active, inactive, draft, or all")

    try:
        images = await repo.list_images(
            ImageFilterParams(status=status_filter, limit=limit, offset=offset),
            admin=True,
        )
    except Exception as e:
        logger.error(f"Error fetching admin images: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to fetch images: {str(e)}")

    data = map_images(images)
    return {"success": True, "data": data, "count": len(data)}


@router.put("/images/{image_id}/status")
async def update_image_status(
    image_id: int,
    request: ImageStatusUpdate,
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """Set an image's status to active, inactive or draft."""
    if request.status not in IMAGE_STATUSES:
        raise ValidationError("Invalid status. Must be active, inactive, or draft")

    try:
        updated = await repo.update_image(image_id, {"status": request.status})
    except Exception as e:
        logger.error(f"Error updating image status: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to update image status: {str(e)}")

    if not updated:
        raise NotFoundError("Gallery image not found")

    logger.info(f"Image {image_id} status updated to {request.status}")
    return {
        "success": True,
        "data": map_image(updated),
        "message": f"Image status updated to {request.status}",
    }


@router.put("/images/{image_id}/featured")
async def update_image_featured(
    image_id: int,
    request: ImageFeaturedUpdate,
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """Feature or unfeature an image."""
    try:
        updated = await repo.update_image(image_id, {"is_featured": request.is_featured})
    except Exception as e:
        logger.error(f"Error updating featured status: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to update featured status: {str(e)}")

    if not updated:
        raise NotFoundError("Gallery image not found")

    return {
        "success": True,
        "data": map_image(updated),
        "message": f"Image {'featured' if request.is_featured else 'unfeatured'} successfully",
    }


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreate,
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """Create a category. The name is stored as a slug."""
    if not request.name or not request.display_name:
        raise ValidationError("Name and display_name are required")

    try:
        category = await repo.create_category({
            "name": slugify(request.name),
            "display_name": request.display_name,
            "description": request.description or "",
            "sort_order": request.sort_order or 0,
        })
    except Exception as e:
        logger.error(f"Error creating category: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to create category: {str(e)}")

    logger.info(f"Created category {category.name} (ID {category.id})")
    return {
        "success": True,
        "data": map_category(category),
        "message": "Category created successfully",
    }


@router.put("/categories/{category_id}")
async def update_category(
    category_id: int,
    request: CategoryUpdate,
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """Update a category. Empty name or display_name values are ignored."""
    values = {}
    if request.name:
        values["name"] = slugify(request.name)
    if request.display_name:
        values["display_name"] = request.display_name
    if request.description is not None:
        values["description"] = request.description
    if request.sort_order is not None:
        values["sort_order"] = request.sort_order

    try:
        category = await repo.update_category(category_id, values)
    except Exception as e:
        logger.error(f"Error updating category: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to update category: {str(e)}")

    if not category:
        raise NotFoundError("Category not found")

    return {
        "success": True,
        "data": map_category(category),
        "message": "Category updated successfully",
    }


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """
    Delete a category.
    Categories still referenced by images cannot be deleted.
    """
    try:
        count = await repo.count_images_in_category(category_id)
        if count > 0:
            raise ValidationError(f"Cannot delete category with {count} associated images")

        if not await repo.delete_category(category_id):
            raise NotFoundError("Category not found")

    except GalleryError:
        raise
    except Exception as e:
        logger.error(f"Error deleting category: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to delete category: {str(e)}")

    logger.info(f"Deleted category ID {category_id}")
    return {"success": True, "message": "Category deleted successfully"}


@router.get("/storage/usage")
async def get_storage_usage(repo: GalleryRepository = Depends(get_gallery_repository)):
    """
    Storage usage summed from the sizes recorded in image metadata.
    This is not read from the storage backend and can drift from it.
    """
    try:
        metadata_rows = await repo.list_image_metadata()
    except Exception as e:
        logger.error(f"Error fetching storage usage: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to fetch storage usage: {str(e)}")

    return {"success": True, "data": map_storage_usage(metadata_rows, settings.STORAGE_BUCKET)}
