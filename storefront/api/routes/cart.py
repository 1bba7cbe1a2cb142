"""
Cart routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.models.user import User
from storefront.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartResponse,
    CartSyncRequest,
    CartValidationResponse,
)
from storefront.services import cart_service
from storefront.api.deps import get_current_user

router = APIRouter()


async def _cart_response(db: AsyncSession, user_id: int) -> CartResponse:
    items = await cart_service.get_cart_items(db, user_id)
    subtotal, item_count = cart_service.summarize(items)
    return CartResponse(
        items=items,
        subtotal=round(float(subtotal), 2),
        item_count=item_count,
    )


@router.get("", response_model=CartResponse)
async def get_cart(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user's cart"""
    return await _cart_response(db, user.id)


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item_data: CartItemCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await cart_service.add_item(db, user.id, item_data.product_id, item_data.quantity)
    await db.commit()
    return await _cart_response(db, user.id)


@router.patch("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: int,
    item_data: CartItemUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await cart_service.update_item(db, user.id, item_id, item_data.quantity)
    await db.commit()
    return await _cart_response(db, user.id)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await cart_service.remove_item(db, user.id, item_id)
    await db.commit()
    return await _cart_response(db, user.id)


@router.delete("", response_model=CartResponse)
async def clear_cart(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await cart_service.clear_cart(db, user.id)
    await db.commit()
    return await _cart_response(db, user.id)


@router.post("/sync", response_model=CartResponse)
async def sync_cart(
    payload: CartSyncRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Merge a client-local cart into the server cart after sign-in."""
    await cart_service.sync_cart(db, user.id, payload.items)
    await db.commit()
    return await _cart_response(db, user.id)


@router.get("/validate", response_model=CartValidationResponse)
async def validate_cart(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await cart_service.validate_cart(db, user.id)
