"""create_gallery_tables

Revision ID: 3c1d9e7a52b0
Revises:
Create Date: 2026-10-18 10:12:41.508213

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d9e7a52b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'gallery_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_gallery_categories_id'), 'gallery_categories', ['id'], unique=False)
    op.create_index(op.f('ix_gallery_categories_name'), 'gallery_categories', ['name'], unique=True)

    op.create_table(
        'gallery_images',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_url', sa.String(), nullable=False),
        sa.Column('thumbnail_url', sa.String(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['gallery_categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('active', 'inactive', 'draft')", name='ck_gallery_images_status'),
    )
    op.create_index(op.f('ix_gallery_images_id'), 'gallery_images', ['id'], unique=False)
    op.create_index(op.f('ix_gallery_images_category_id'), 'gallery_images', ['category_id'], unique=False)
    op.create_index(op.f('ix_gallery_images_is_featured'), 'gallery_images', ['is_featured'], unique=False)
    op.create_index(op.f('ix_gallery_images_sort_order'), 'gallery_images', ['sort_order'], unique=False)
    op.create_index(op.f('ix_gallery_images_status'), 'gallery_images', ['status'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_gallery_images_status'), table_name='gallery_images')
    op.drop_index(op.f('ix_gallery_images_sort_order'), table_name='gallery_images')
    op.drop_index(op.f('ix_gallery_images_is_featured'), table_name='gallery_images')
    op.drop_index(op.f('ix_gallery_images_category_id'), table_name='gallery_images')
    op.drop_index(op.f('ix_gallery_images_id'), table_name='gallery_images')
    op.drop_table('gallery_images')

    op.drop_index(op.f('ix_gallery_categories_name'), table_name='gallery_categories')
    op.drop_index(op.f('ix_gallery_categories_id'), table_name='gallery_categories')
    op.drop_table('gallery_categories')
