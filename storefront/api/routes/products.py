"""
Product catalog routes (public)
"""
from typing import List, Optional, Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from storefront.core.database import get_db
from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.models.product import Category, Product
from storefront.schemas.product import CategoryResponse, ProductResponse, ProductList, RelatedProducts

router = APIRouter()

RELATED_LIMIT = 8

SORT_OPTIONS = {
    "newest": (Product.created_at.desc(), Product.id.desc()),
    "price-asc": (Product.price.asc(), Product.id.asc()),
    "price-desc": (Product.price.desc(), Product.id.asc()),
    "name": (Product.name.asc(), Product.id.asc()),
}


@router.get("", response_model=ProductList)
async def list_products(
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    search: Optional[str] = None,
    sort: Literal["newest", "price-asc", "price-desc", "name"] = "newest",
    featured: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """List active products with filters."""
    query = select(Product).where(Product.active == True)  # noqa: E712

    if category:
        query = query.join(Category, Product.category_id == Category.id).where(Category.slug == category)
    if featured:
        query = query.where(Product.featured == True)  # noqa: E712
    if min_price is not None:
        query = query.where(Product.price >= min_price)
    if max_price is not None:
        query = query.where(Product.price <= max_price)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Product.name.ilike(pattern),
            Product.description.ilike(pattern),
        ))

    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    result = await db.execute(query.order_by(*SORT_OPTIONS[sort]).limit(limit))

    return ProductList(items=result.scalars().all(), total=total or 0)


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Category).order_by(Category.name))
    return result.scalars().all()


@router.get("/related", response_model=RelatedProducts)
async def get_related_products(
    slug: Optional[str] = None,
    product_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db)
):
    """Active products from the same category, featured first then newest."""
    if not slug and product_id is None:
        raise ValidationError("Either slug or product_id is required")

    condition = (Product.slug == slug) if slug else (Product.id == product_id)
    product = (await db.execute(select(Product).where(condition))).scalars().first()
    if not product:
        raise NotFoundError("Product not found", details={"product": slug or product_id})

    if product.category_id is None:
        return RelatedProducts(related_products=[])

    result = await db.execute(
        select(Product)
        .where(
            Product.category_id == product.category_id,
            Product.active == True,  # noqa: E712
            Product.id != product.id,
        )
        .order_by(Product.featured.desc(), Product.created_at.desc(), Product.id.desc())
        .limit(RELATED_LIMIT)
    )
    return RelatedProducts(related_products=result.scalars().all())


@router.get("/{product_ref}", response_model=ProductResponse)
async def get_product(
    product_ref: str,
    db: AsyncSession = Depends(get_db)
):
    """Get an active product by numeric id or slug."""
    condition = Product.slug == product_ref
    if product_ref.isdigit():
        condition = or_(Product.id == int(product_ref), condition)

    result = await db.execute(
        select(Product).where(condition, Product.active == True)  # noqa: E712
    )
    product = result.scalars().first()
    if not product:
        raise NotFoundError("Product not found", details={"product": product_ref})
    return product
