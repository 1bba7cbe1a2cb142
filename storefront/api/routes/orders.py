"""
Customer order routes
"""
import math
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.models.user import User
from storefront.schemas.order import OrderResponse, OrderList
from storefront.services.order_service import order_service
from storefront.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=OrderList)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's orders, newest first."""
    orders, total = await order_service.list_user_orders(db, current_user.id, page, limit)
    return OrderList(
        orders=orders,
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await order_service.get_user_order(db, order_id, current_user.id)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Cancel an order that has not shipped.

    Inventory for every line is restored in the same transaction as the
    status change.
    """
    order = await order_service.cancel_order(db, order_id, current_user.id)
    await db.commit()
    return order
