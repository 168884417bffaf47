"""Gallery repository: filtered image queries and category CRUD."""

from typing import List, Optional, Tuple, Dict, Any

from sqlalchemy import select, func, delete, false, Select
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gallery_api.database import get_db
from gallery_api.models import GalleryImage, GalleryCategory, ImageStatus
from gallery_api.schemas import ImageFilterParams

# Window size used when an offset is given without a limit
DEFAULT_PAGE_WINDOW = 50

ALL = "all"

QUALITY_ASSURANCE = 100


def build_image_query(
    filters: ImageFilterParams,
    admin: bool = False,
    category_id: Optional[int] = None,
) -> Select:
    """
    Compose the image listing statement.

    Public listings only ever see active images, ordered by sort_order.
    Admin listings see every status unless one is requested, newest first.
    `category_id` is the id resolved from `filters.category`; a category
    filter that could not be resolved matches nothing.
    """
    query = select(GalleryImage).options(selectinload(GalleryImage.category))

    if admin:
        status = filters.status or ALL
    else:
        status = ImageStatus.ACTIVE.value
    if status != ALL:
        query = query.where(GalleryImage.status == status)

    if filters.category and filters.category != ALL:
        if category_id is None:
            query = query.where(false())
        else:
            query = query.where(GalleryImage.category_id == category_id)

    if filters.featured is not None:
        query = query.where(GalleryImage.is_featured == filters.featured)

    if admin:
        query = query.order_by(GalleryImage.created_at.desc(), GalleryImage.id.desc())
    else:
        query = query.order_by(GalleryImage.sort_order.asc(), GalleryImage.id.asc())

    if filters.offset:
        window = filters.limit if filters.limit is not None else DEFAULT_PAGE_WINDOW
        query = query.offset(filters.offset).limit(window)
    elif filters.limit is not None:
        query = query.limit(filters.limit)

    return query


class GalleryRepository:
    """Data access for gallery images and categories."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ===== IMAGES =====

    async def resolve_category_id(self, slug: str) -> Optional[int]:
        """Look up a category id by its slug."""
        result = await self.session.execute(
            select(GalleryCategory.id).where(GalleryCategory.name == slug)
        )
        return result.scalar_one_or_none()

    async def list_images(self, filters: ImageFilterParams, admin: bool = False) -> List[GalleryImage]:
        """Run the filtered image listing."""
        category_id = None
        if filters.category and filters.category != ALL:
            category_id = await self.resolve_category_id(filters.category)

        result = await self.session.execute(build_image_query(filters, admin, category_id))
        return list(result.scalars().all())

    async def get_image(self, image_id: int, admin: bool = False) -> Optional[GalleryImage]:
        """Get an image with its category. Public reads only see active images."""
        query = (
            select(GalleryImage)
            .options(selectinload(GalleryImage.category))
            .where(GalleryImage.id == image_id)
            .execution_options(populate_existing=True)
        )
        if not admin:
            query = query.where(GalleryImage.status == ImageStatus.ACTIVE.value)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create_image(self, values: Dict[str, Any]) -> GalleryImage:
        """Insert an image and return it with server-assigned fields loaded."""
        image = GalleryImage(**values)
        self.session.add(image)
        await self.session.commit()
        return await self.get_image(image.id, admin=True)

    async def update_image(self, image_id: int, values: Dict[str, Any]) -> Optional[GalleryImage]:
        """Apply `values` to an image. Returns None when it does not exist."""
        image = await self.get_image(image_id, admin=True)
        if not image:
            return None

        for key, value in values.items():
            setattr(image, key, value)
        await self.session.commit()
        return await self.get_image(image_id, admin=True)

    async def delete_image(self, image_id: int) -> bool:
        """Delete an image row. Returns False when nothing was deleted."""
        result = await self.session.execute(
            delete(GalleryImage).where(GalleryImage.id == image_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def count_images(self, featured: Optional[bool] = None, active_only: bool = True) -> int:
        query = select(func.count(GalleryImage.id))
        if active_only:
            query = query.where(GalleryImage.status == ImageStatus.ACTIVE.value)
        if featured is not None:
            query = query.where(GalleryImage.is_featured == featured)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def get_stats(self) -> Dict[str, int]:
        """Public gallery statistics. qualityAssurance is a fixed value."""
        return {
            "totalImages": await self.count_images(),
            "totalCategories": await self.count_categories(),
            "featuredImages": await self.count_images(featured=True),
            "qualityAssurance": QUALITY_ASSURANCE,
        }

    async def list_image_metadata(self) -> List[Dict[str, Any]]:
        """Metadata of every image that has some, regardless of status."""
        result = await self.session.execute(
            select(GalleryImage.image_metadata).where(GalleryImage.image_metadata.is_not(None))
        )
        return [metadata for metadata in result.scalars().all() if metadata]

    async def list_images_to_migrate(self) -> List[GalleryImage]:
        """Active images, used by the storage migration script."""
        result = await self.session.execute(
            select(GalleryImage)
            .where(GalleryImage.status == ImageStatus.ACTIVE.value)
            .order_by(GalleryImage.id.asc())
        )
        return list(result.scalars().all())

    # ===== CATEGORIES =====

    async def count_categories(self) -> int:
        result = await self.session.execute(select(func.count(GalleryCategory.id)))
        return result.scalar() or 0

    async def list_categories_with_counts(self) -> List[Tuple[GalleryCategory, int]]:
        """Every category with the number of active images in it, ordered by id."""
        image_count = func.count(GalleryImage.id)
        result = await self.session.execute(
            select(GalleryCategory, image_count)
            .outerjoin(
                GalleryImage,
                (GalleryImage.category_id == GalleryCategory.id)
                & (GalleryImage.status == ImageStatus.ACTIVE.value),
            )
            .group_by(GalleryCategory.id)
            .order_by(GalleryCategory.id.asc())
        )
        return [(category, count) for category, count in result.all()]

    async def get_category(self, category_id: int) -> Optional[GalleryCategory]:
        result = await self.session.execute(
            select(GalleryCategory)
            .where(GalleryCategory.id == category_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_category(self, values: Dict[str, Any]) -> GalleryCategory:
        category = GalleryCategory(**values)
        self.session.add(category)
        await self.session.commit()
        return await self.get_category(category.id)

    async def update_category(self, category_id: int, values: Dict[str, Any]) -> Optional[GalleryCategory]:
        category = await self.get_category(category_id)
        if not category:
            return None

        for key, value in values.items():
            setattr(category, key, value)
        await self.session.commit()
        return await self.get_category(category_id)

    async def count_images_in_category(self, category_id: int) -> int:
        """Images of any status referencing the category."""
        result = await self.session.execute(
            select(func.count(GalleryImage.id)).where(GalleryImage.category_id == category_id)
        )
        return result.scalar() or 0

    async def delete_category(self, category_id: int) -> bool:
        result = await self.session.execute(
            delete(GalleryCategory).where(GalleryCategory.id == category_id)
        )
        await self.session.commit()
        return result.rowcount > 0


def get_gallery_repository(db: AsyncSession = Depends(get_db)) -> GalleryRepository:
    """FastAPI dependency providing a repository bound to the request session."""
    return GalleryRepository(db)
