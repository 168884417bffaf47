"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal


ImageStatusLiteral = Literal["active", "inactive", "draft"]
IMAGE_STATUSES = ("active", "inactive", "draft")


class CategoryRef(BaseModel):
    """Category fields embedded in an image response."""
    id: int
    name: str
    display_name: str

    model_config = ConfigDict(from_attributes=True)


class GalleryImageResponse(BaseModel):
    """
    Response schema for gallery image data.
    The joined category is reduced to its id, slug and display name.
    """
    id: int
    title: str
    description: str = ""
    image_url: str
    thumbnail_url: str
    category_id: Optional[int] = None
    category: Optional[CategoryRef] = None
    tags: List[str] = []
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="image_metadata")
    is_featured: bool
    sort_order: int
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GalleryCategoryResponse(BaseModel):
    """Response schema for category records returned to admins."""
    id: int
    name: str
    display_name: str
    description: str = ""
    sort_order: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ImageFilterParams(BaseModel):
    """
    Filters for image listings.
    `status` of None means the audience default: active for public
    listings, every status for admin listings.
    """
    category: Optional[str] = None
    featured: Optional[bool] = None
    limit: Optional[int] = Field(default=None, ge=1)
    offset: Optional[int] = Field(default=None, ge=0)
    status: Optional[Literal["active", "inactive", "draft", "all"]] = None


class GalleryImageUpdate(BaseModel):
    """
    Request schema for updating a gallery image.
    Used by PUT /gallery/images/{id}. Unknown fields are rejected.
    """
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    tags: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = None
    status: Optional[ImageStatusLiteral] = None
    thumbnail_url: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(
        "title", "description", "tags", "is_featured", "sort_order", "status", "thumbnail_url",
        mode="before",
    )
    @classmethod
    def reject_null(cls, v):
        # Only category_id may be cleared
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class ImageStatusUpdate(BaseModel):
    """Request schema for PUT /admin/images/{id}/status."""
    status: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ImageFeaturedUpdate(BaseModel):
    """Request schema for PUT /admin/images/{id}/featured."""
    is_featured: bool = False

    model_config = ConfigDict(extra="forbid")


class CategoryCreate(BaseModel):
    """
    Request schema for POST /admin/categories.
    name and display_name are checked by the handler so the error message
    names both.
    """
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: str = ""
    sort_order: int = 0

    model_config = ConfigDict(extra="forbid")


class CategoryUpdate(BaseModel):
    """Request schema for PUT /admin/categories/{id}."""
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None

    model_config = ConfigDict(extra="forbid")
