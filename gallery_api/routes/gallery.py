"""
Gallery routes.
Public read endpoints plus the admin-gated image create, update and delete.
"""
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from typing import List, Optional
import logging

from gallery_api.config import settings
from gallery_api.exceptions import GalleryError, BackendError, NotFoundError, ValidationError
from gallery_api.mappers import map_image, map_images, map_category_counts
from gallery_api.repositories.gallery import GalleryRepository, get_gallery_repository
from gallery_api.schemas import GalleryImageUpdate, ImageFilterParams
from gallery_api.services.storage import CloudinaryStorage, get_storage
from gallery_api.utils.auth import require_admin
from gallery_api.utils.rate_limit import limiter, RATE_LIMITS
from gallery_api.utils.storage import (
    UploadCandidate,
    correct_mime_type,
    extract_metadata,
    generate_filename,
    generate_thumbnail_url,
    resolve_mime_type,
    validate_upload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gallery", tags=["gallery"])


def _parse_int(value: Optional[str], field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{field} must be an integer")


def _parse_image_id(value: str) -> int:
    """Ids that are not integers name no image."""
    try:
        return int(value)
    except ValueError:
        raise NotFoundError("Gallery image not found")


def _parse_tags(tags: Optional[List[str]]) -> List[str]:
    """Tags arrive as repeated fields, comma-separated, or both."""
    if not tags:
        return []
    parsed = []
    for value in tags:
        parsed.extend(tag.strip() for tag in value.split(","))
    return [tag for tag in parsed if tag]


@router.get("/images")
async def get_gallery_images(
    category: Optional[str] = None,
    featured: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """
    Get active gallery images, ordered by sort_order.

    Args:
        category: Category slug, or "all". An unknown slug yields no images.
        featured: "true" for featured images only, any other value for the rest
        limit: Maximum number of images to return

    Returns:
        dict: Envelope with the images and their count
    """
    try:
        filters = ImageFilterParams(
            category=category,
            featured=(featured == "true") if featured is not None else None,
            limit=limit,
        )
        images = await repo.list_images(filters)
        logger.info(f"Retrieved {len(images)} gallery images (category: {category}, featured: {featured})")

        data = map_images(images)
        return {"success": True, "data": data, "count": len(data)}

    except GalleryError:
        raise
    except Exception as e:
        logger.error(f"Failed to retrieve gallery images: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to fetch gallery images: {str(e)}")


@router.get("/images/{image_id}")
async def get_gallery_image(
    image_id: str,
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """Get a single active gallery image."""
    image_id = _parse_image_id(image_id)
    try:
        image = await repo.get_image(image_id)
    except Exception as e:
        logger.error(f"Failed to retrieve gallery image {image_id}: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to fetch gallery image: {str(e)}")

    if not image:
        raise NotFoundError("Gallery image not found")

    return {"success": True, "data": map_image(image)}


@router.get("/categories")
async def get_gallery_categories(repo: GalleryRepository = Depends(get_gallery_repository)):
    """
    Get category filters with image counts.
    The first entry is "all", counting every categorized image.
    """
    try:
        rows = await repo.list_categories_with_counts()
    except Exception as e:
        logger.error(f"Failed to retrieve gallery categories: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to fetch gallery categories: {str(e)}")

    return {"success": True, "data": map_category_counts(rows)}


@router.get("/stats")
async def get_gallery_stats(repo: GalleryRepository = Depends(get_gallery_repository)):
    """Get gallery statistics."""
    try:
        stats = await repo.get_stats()
    except Exception as e:
        logger.error(f"Failed to retrieve gallery stats: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to fetch gallery stats: {str(e)}")

    return {"success": True, "data": stats}


@router.post("/images", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def create_gallery_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    tags: Optional[List[str]] = Form(None),
    is_featured: Optional[str] = Form(None),
    sort_order: Optional[str] = Form(None),
    authenticated: bool = Depends(require_admin),
    repo: GalleryRepository = Depends(get_gallery_repository),
    storage: CloudinaryStorage = Depends(get_storage),
):
    """
    Upload an image and create its gallery record.
    Requires the admin key in production.

    The file is validated, stored under a generated key, and recorded as
    an active image.

    Returns:
        dict: Envelope with the created image

    Raises:
        ValidationError: 400 if title or file is missing or the file is rejected
        StorageError: 500 if the upload fails
    """
    if not title or image is None:
        logger.error(f"Missing required fields: has_title={bool(title)}, has_file={image is not None}")
        raise ValidationError("Title and image file are required")

    try:
        content = await image.read()
        candidate = correct_mime_type(UploadCandidate(
            content=content,
            filename=image.filename or "",
            content_type=image.content_type or "",
            size=len(content),
        ))
        logger.info(
            f"Upload request received: title={title!r}, file={candidate.filename}, "
            f"type={candidate.content_type}, size={candidate.size}"
        )

        validation = validate_upload(candidate, max_size=settings.MAX_UPLOAD_SIZE)
        if not validation.ok:
            logger.error(f"File validation failed: {validation.message}")
            raise ValidationError(validation.message)

        values = {
            "title": title,
            "description": description or "",
            "category_id": _parse_int(category_id, "category_id"),
            "tags": _parse_tags(tags),
            "is_featured": is_featured == "true",
            "sort_order": _parse_int(sort_order, "sort_order") or 0,
            "image_metadata": extract_metadata(candidate),
            "status": "active",
        }

        key = generate_filename(candidate.filename)
        stored = await storage.upload(content, key, settings.STORAGE_BUCKET, resolve_mime_type(key))

        try:
            new_image = await repo.create_image({
                **values,
                "image_url": stored.public_url,
                "thumbnail_url": generate_thumbnail_url(stored.public_url),
            })
        except Exception as e:
            logger.error(f"Failed to record uploaded image {key}, removing stored object: {str(e)}")
            try:
                await storage.remove(key, settings.STORAGE_BUCKET)
            except GalleryError as cleanup_error:
                logger.error(f"Failed to remove orphaned object {key}: {cleanup_error.message}")
            raise

        logger.info(f"Successfully created gallery image: ID {new_image.id}, key {key}")

        return {
            "success": True,
            "data": map_image(new_image),
            "message": "Gallery image uploaded and created successfully",
        }

    except GalleryError:
        raise
    except Exception as e:
        logger.error(f"Error creating gallery image: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to create gallery image: {str(e)}")


@router.put("/images/{image_id}")
async def update_gallery_image(
    image_id: str,
    image_update: GalleryImageUpdate,
    authenticated: bool = Depends(require_admin),
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """
    Update fields of a gallery image.
    Requires the admin key in production.
    """
    image_id = _parse_image_id(image_id)
    values = image_update.model_dump(exclude_unset=True)
    if not values:
        raise ValidationError("No fields provided for update")

    try:
        updated = await repo.update_image(image_id, values)
    except Exception as e:
        logger.error(f"Error updating gallery image {image_id}: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to update gallery image: {str(e)}")

    if not updated:
        raise NotFoundError("Gallery image not found")

    logger.info(f"Successfully updated gallery image: ID {image_id}")
    return {"success": True, "data": map_image(updated)}


@router.delete("/images/{image_id}")
async def delete_gallery_image(
    image_id: str,
    authenticated: bool = Depends(require_admin),
    repo: GalleryRepository = Depends(get_gallery_repository),
    storage: CloudinaryStorage = Depends(get_storage),
):
    """
    Delete a gallery image and the stored file it owns.
    Requires the admin key in production.

    Images whose URL does not point into the storage bucket (e.g. external
    URLs) only have their record deleted.
    """
    image_id = _parse_image_id(image_id)
    try:
        image = await repo.get_image(image_id, admin=True)
        if not image:
            raise NotFoundError("Gallery image not found")

        key = storage.key_from_url(image.image_url, settings.STORAGE_BUCKET)
        if key:
            await storage.remove(key, settings.STORAGE_BUCKET)
        else:
            logger.warning(f"Image {image_id} has no stored object ({image.image_url}), deleting record only")

        await repo.delete_image(image_id)
        logger.info(f"Successfully deleted gallery image: ID {image_id}")

        return {"success": True, "message": "Gallery image deleted successfully"}

    except GalleryError:
        raise
    except Exception as e:
        logger.error(f"Error deleting gallery image {image_id}: {str(e)}", exc_info=True)
        raise BackendError(f"Failed to delete gallery image: {str(e)}")
