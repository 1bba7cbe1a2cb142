"""
Catalog models

Product.inventory is a plain counter mutated with SQL-side increments; it
carries no non-negative constraint, so concurrent checkouts can oversell.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, JSON, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.core.utils import utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text)

    products = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text)
    sku = Column(String, unique=True, index=True, nullable=False)

    # Pricing - Numeric(12,2) for monetary values
    price = Column(Numeric(12, 2), nullable=False)
    compare_price = Column(Numeric(12, 2))

    # Inventory
    inventory = Column(Integer, default=0, nullable=False)

    # Media
    images = Column(JSON, default=list)

    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, index=True)

    featured = Column(Boolean, default=False)
    active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    category = relationship("Category", back_populates="products")
    cart_items = relationship("CartItem", back_populates="product")
    order_items = relationship("OrderItem", back_populates="product")
    vendor = relationship("Vendor", back_populates="products")
    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_products_active_featured", "active", "featured"),
    )

    @property
    def primary_image(self):
        return self.images[0] if self.images else None

    def __repr__(self):
        return f"<Product(id={self.id}, sku='{self.sku}', inventory={self.inventory})>"
