"""Vendors, reviews and user profile fields

Revision ID: 20261019_vendors_reviews
Revises: 20261019_initial
Create Date: 2026-10-19

One vendor per user and one review per user per product, both enforced by
unique constraints.
"""

from alembic import op
import sqlalchemy as sa

revision = '20261019_vendors_reviews'
down_revision = '20261019_initial'
branch_labels = None
depends_on = None

VENDOR_STATUS = sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'SUSPENDED', name='vendorstatus')


def upgrade():
    op.add_column('users', sa.Column('phone', sa.String(30)))
    op.add_column('users', sa.Column('is_vendor', sa.Boolean(), server_default=sa.false()))

    op.create_table(
        'vendors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('business_name', sa.String(200), nullable=False),
        sa.Column('business_email', sa.String(), nullable=False),
        sa.Column('business_phone', sa.String(30)),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('address', sa.String(500)),
        sa.Column('city', sa.String(100)),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('tax_id', sa.String(50)),
        sa.Column('status', VENDOR_STATUS, nullable=False, server_default='PENDING'),
        sa.Column('commission', sa.Numeric(5, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_vendors_id', 'vendors', ['id'])
    op.create_index('ix_vendors_business_email', 'vendors', ['business_email'], unique=True)
    op.create_index('ix_vendors_status', 'vendors', ['status'])

    op.add_column(
        'products',
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('vendors.id', ondelete='SET NULL')),
    )
    op.create_index('ix_products_vendor_id', 'products', ['vendor_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_reviews_user_product'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_id', 'reviews', ['id'])
    op.create_index('ix_reviews_product_id', 'reviews', ['product_id'])
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])
    op.create_index('ix_reviews_created_at', 'reviews', ['created_at'])


def downgrade():
    op.drop_table('reviews')
    op.drop_index('ix_products_vendor_id', table_name='products')
    op.drop_column('products', 'vendor_id')
    op.drop_table('vendors')
    op.drop_column('users', 'is_vendor')
    op.drop_column('users', 'phone')

    bind = op.get_bind()
    VENDOR_STATUS.drop(bind, checkfirst=True)
