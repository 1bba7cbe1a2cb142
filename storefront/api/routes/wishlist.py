"""
Wishlist routes
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from storefront.core.database import get_db
from storefront.core.exceptions import NotFoundError, StateConflictError
from storefront.models import Product, User, WishlistItem
from storefront.schemas.wishlist import WishlistAdd, WishlistItemResponse
from storefront.api.deps import get_current_user

router = APIRouter()


@router.get("", response_model=List[WishlistItemResponse])
async def get_wishlist(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(WishlistItem)
        .where(WishlistItem.user_id == user.id)
        .options(selectinload(WishlistItem.product))
        .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
    )
    return result.scalars().all()


@router.post("", response_model=WishlistItemResponse, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    data: WishlistAdd,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    product = await db.get(Product, data.product_id)
    if not product:
        raise NotFoundError("Product not found", details={"product_id": data.product_id})

    result = await db.execute(
        select(WishlistItem).where(
            WishlistItem.user_id == user.id,
            WishlistItem.product_id == data.product_id,
        )
    )
    if result.scalar_one_or_none():
        raise StateConflictError("Product already in wishlist", code="ALREADY_IN_WISHLIST")

    item = WishlistItem(user_id=user.id, product_id=data.product_id)
    db.add(item)
    await db.commit()

    result = await db.execute(
        select(WishlistItem)
        .where(WishlistItem.id == item.id)
        .options(selectinload(WishlistItem.product))
    )
    return result.scalar_one()


@router.delete("/{product_id}")
async def remove_from_wishlist(
    product_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(WishlistItem).where(
            WishlistItem.user_id == user.id,
            WishlistItem.product_id == product_id,
        )
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError("Item not found in wishlist", details={"product_id": product_id})

    await db.delete(item)
    await db.commit()
    return {"message": "Removed from wishlist"}
