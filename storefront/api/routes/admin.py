"""
Admin routes - dashboard stats and catalog management
"""
import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from storefront.core.database import get_db
from storefront.core.exceptions import NotFoundError, StateConflictError, ValidationError
from storefront.core.utils import slugify
from storefront.models import Category, Order, OrderStatus, Product, User, Vendor
from storefront.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from storefront.services.storage import StorageService
from storefront.api.deps import get_current_admin, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter()

LOW_STOCK_THRESHOLD = 5


@router.get("/stats")
async def get_stats(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Dashboard counters and revenue (admin only)."""
    users_count = await db.scalar(select(func.count(User.id)))
    products_count = await db.scalar(select(func.count(Product.id)))
    orders_count = await db.scalar(select(func.count(Order.id)))
    low_stock_count = await db.scalar(
        select(func.count(Product.id)).where(
            Product.inventory <= LOW_STOCK_THRESHOLD,
            Product.active == True,  # noqa: E712
        )
    )
    revenue = await db.scalar(
        select(func.coalesce(func.sum(Order.total), 0)).where(Order.status != OrderStatus.CANCELLED)
    )

    result = await db.execute(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    )
    by_status = {s.value: 0 for s in OrderStatus}
    for order_status, count in result.all():
        by_status[order_status.value] = count

    return {
        "users": users_count or 0,
        "products": products_count or 0,
        "orders": orders_count or 0,
        "low_stock_products": low_stock_count or 0,
        "revenue": round(float(revenue or 0), 2),
        "orders_by_status": by_status,
    }


async def _get_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    slug = data.slug or slugify(data.name)

    duplicate = await db.scalar(
        select(func.count(Product.id)).where((Product.slug == slug) | (Product.sku == data.sku))
    )
    if duplicate:
        raise StateConflictError("Product with this slug or SKU already exists", code="DUPLICATE_PRODUCT")

    if data.category_id is not None and not await db.get(Category, data.category_id):
        raise ValidationError("Unknown category", details={"category_id": data.category_id})
    if data.vendor_id is not None and not await db.get(Vendor, data.vendor_id):
        raise ValidationError("Unknown vendor", details={"vendor_id": data.vendor_id})

    product = Product(
        name=data.name,
        slug=slug,
        sku=data.sku,
        description=data.description,
        price=data.price,
        compare_price=data.compare_price,
        inventory=data.inventory,
        images=list(data.images),
        category_id=data.category_id,
        vendor_id=data.vendor_id,
        featured=data.featured,
        active=data.active,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)

    logger.info(f"Admin {admin.id} created product {product.id} ({product.sku})")
    return product


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    product = await _get_product(db, product_id)

    updates = data.model_dump(exclude_unset=True)
    if "category_id" in updates and updates["category_id"] is not None:
        if not await db.get(Category, updates["category_id"]):
            raise ValidationError("Unknown category", details={"category_id": updates["category_id"]})
    if updates.get("vendor_id") is not None:
        if not await db.get(Vendor, updates["vendor_id"]):
            raise ValidationError("Unknown vendor", details={"vendor_id": updates["vendor_id"]})

    for field, value in updates.items():
        setattr(product, field, value)

    await db.commit()
    await db.refresh(product)
    return product


@router.post("/products/{product_id}/images", response_model=ProductResponse)
async def upload_product_image(
    product_id: int,
    file: UploadFile = File(...),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload an image to the image host and append it to the product."""
    product = await _get_product(db, product_id)
    content = await file.read()

    upload = storage.upload_product_image(
        content,
        file.filename or "image",
        file.content_type or "application/octet-stream",
        product_id=product.id,
    )

    # Reassign so the JSON column is marked dirty
    product.images = [*(product.images or []), upload.url]
    await db.commit()
    await db.refresh(product)
    return product


@router.delete("/products/{product_id}/images", response_model=ProductResponse)
async def delete_product_image(
    product_id: int,
    url: str = Query(..., min_length=1),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    product = await _get_product(db, product_id)
    if url not in (product.images or []):
        raise NotFoundError("Image not found on product", details={"url": url})

    key = storage.key_from_url(url)
    if key:
        storage.delete_object(key)

    product.images = [image for image in product.images if image != url]
    await db.commit()
    await db.refresh(product)
    return product
