"""Create discount tables

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-19 09:12:41.508113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e5b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # users, products, categories, brands and carts belong to the catalog and already exist
    op.create_table(
        'discounts',
        sa.Column('uid', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('code', sa.String(length=5), nullable=False),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('discount_type', sa.Enum('PERCENTAGE', 'FIX_AMOUNT', name='discounttype'), nullable=False),
        sa.Column('value', sa.BigInteger(), nullable=False),
        sa.Column('max_discount_value', sa.BigInteger(), nullable=True),
        sa.Column('min_order_value', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('max_uses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_uses_per_user', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('uses_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_date', postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_date', postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('is_platform', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('shop_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.uid'), nullable=True),
        sa.Column('voucher_type', sa.Enum('PLATFORM', 'SHOP', 'PRODUCT', 'CATEGORY', 'BRAND', name='vouchertype'), nullable=False),
        sa.Column('display_type', sa.Enum('PUBLIC', 'PRIVATE', name='displaytype'), nullable=False),
        sa.Column('discount_apply_type', sa.Enum('ALL', 'SPECIFIC', name='discountapplytype'), nullable=False),
        sa.Column('discount_status', sa.Enum('ACTIVE', 'INACTIVE', name='discountstatus'), nullable=False),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.uid'), nullable=True),
        sa.Column('updated_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.uid'), nullable=True),
        sa.Column('deleted_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.uid'), nullable=True),
        sa.Column('created_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('deleted_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('uid'),
        sa.CheckConstraint('value > 0', name='ck_discounts_positive_value'),
        sa.CheckConstraint('uses_count >= 0', name='ck_discounts_uses_count'),
        sa.CheckConstraint('start_date < end_date', name='ck_discounts_window'),
    )
    op.create_index('ix_discounts_code', 'discounts', ['code'], unique=True)
    op.create_index('ix_discounts_shop_id', 'discounts', ['shop_id'])
    op.create_index('ix_discounts_created_by_id', 'discounts', ['created_by_id'])
    op.create_index('ix_discounts_created_at', 'discounts', ['created_at'])
    op.create_index('ix_discounts_deleted_at', 'discounts', ['deleted_at'])
    op.create_index('idx_discounts_available', 'discounts', ['discount_status', 'start_date', 'end_date'])

    # Many-to-many targets of SPECIFIC vouchers
    op.create_table(
        'discount_products',
        sa.Column('discount_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('discounts.uid'), primary_key=True),
        sa.Column('product_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('products.uid'), primary_key=True),
    )
    op.create_table(
        'discount_categories',
        sa.Column('discount_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('discounts.uid'), primary_key=True),
        sa.Column('category_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('categories.uid'), primary_key=True),
    )
    op.create_table(
        'discount_brands',
        sa.Column('discount_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('discounts.uid'), primary_key=True),
        sa.Column('brand_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('brands.uid'), primary_key=True),
    )

    op.create_table(
        'discount_usages',
        sa.Column('uid', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('discount_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('discounts.uid', ondelete='CASCADE'), nullable=False),
        sa.Column('user_uid', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.uid'), nullable=False),
        sa.Column('order_reference', sa.String(), nullable=True),
        sa.Column('used_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('uid'),
    )
    op.create_index('idx_discount_usages_discount_user', 'discount_usages', ['discount_uid', 'user_uid'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_discount_usages_discount_user', table_name='discount_usages')
    op.drop_table('discount_usages')
    op.drop_table('discount_brands')
    op.drop_table('discount_categories')
    op.drop_table('discount_products')
    op.drop_index('idx_discounts_available', table_name='discounts')
    op.drop_index('ix_discounts_deleted_at', table_name='discounts')
    op.drop_index('ix_discounts_created_at', table_name='discounts')
    op.drop_index('ix_discounts_created_by_id', table_name='discounts')
    op.drop_index('ix_discounts_shop_id', table_name='discounts')
    op.drop_index('ix_discounts_code', table_name='discounts')
    op.drop_table('discounts')
    for enum_name in ('discounttype', 'vouchertype', 'displaytype', 'discountapplytype', 'discountstatus'):
        op.execute(f'DROP TYPE IF EXISTS {enum_name}')
