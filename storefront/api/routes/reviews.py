"""
Product review routes

Anyone can read a product's reviews; signed-in customers can leave one
review per product.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from storefront.core.database import get_db
from storefront.core.exceptions import NotFoundError, StateConflictError
from storefront.models import Product, Review, User
from storefront.schemas.review import ReviewCreate, ReviewResponse, ProductReviews
from storefront.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_active_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product or not product.active:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


@router.get("/{product_id}", response_model=ProductReviews)
async def get_product_reviews(
    product_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Reviews for a product, newest first, with the average rating."""
    result = await db.execute(
        select(Review)
        .where(Review.product_id == product_id)
        .options(selectinload(Review.user))
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews = result.scalars().all()

    average = sum(r.rating for r in reviews) / len(reviews) if reviews else 0

    return ProductReviews(
        reviews=reviews,
        average_rating=round(average, 2),
        total_reviews=len(reviews),
    )


@router.post("/{product_id}", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    product_id: int,
    data: ReviewCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await _get_active_product(db, product_id)

    existing = await db.scalar(
        select(Review.id).where(Review.user_id == user.id, Review.product_id == product_id)
    )
    if existing:
        raise StateConflictError("You have already reviewed this product", code="ALREADY_REVIEWED")

    review = Review(product_id=product_id, user_id=user.id, rating=data.rating, comment=data.comment)
    db.add(review)
    await db.commit()

    logger.info(f"User {user.id} reviewed product {product_id} ({data.rating}/5)")

    result = await db.execute(
        select(Review).where(Review.id == review.id).options(selectinload(Review.user))
    )
    return result.scalar_one()
