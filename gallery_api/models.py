"""
SQLAlchemy models for the gallery.
All database models inherit from Base (declarative base).
"""
import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from gallery_api.database import Base


class ImageStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


class GalleryCategory(Base):
    """
    Gallery category model.
    `name` is a URL-safe slug, `display_name` is shown to visitors.
    """
    __tablename__ = "gallery_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    display_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    images = relationship("GalleryImage", back_populates="category")

    def __repr__(self):
        return f"<GalleryCategory {self.name}>"


class GalleryImage(Base):
    """
    Gallery image model.
    Owns exactly one stored object, referenced by `image_url`.
    """
    __tablename__ = "gallery_images"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=False)
    category_id = Column(
        Integer,
        ForeignKey("gallery_categories.id"),
        nullable=True,
        index=True,
    )
    tags = Column(JSON, nullable=False, default=list)
    # "metadata" is reserved on declarative classes
    image_metadata = Column("metadata", JSON, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0, index=True)
    status = Column(String(20), nullable=False, default=ImageStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("GalleryCategory", back_populates="images")

    def __repr__(self):
        return f"<GalleryImage {self.id} {self.title!r}>"
