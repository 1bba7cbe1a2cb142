"""
Admin Orders Routes

Fulfillment endpoints for managing all orders.
Requires admin authentication.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.models.order import OrderStatus
from storefront.models.user import User
from storefront.schemas.order import AdminOrderList, OrderResponse, OrderStatusUpdate
from storefront.services.email_service import EmailService
from storefront.services.order_service import order_service
from storefront.api.deps import get_current_admin, get_email_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=AdminOrderList)
async def list_all_orders(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Search by order number or customer email"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Get all orders with filters (admin only)."""
    orders, total = await order_service.list_orders(
        db,
        status=status_filter,
        search=search,
        limit=limit,
        offset=offset,
    )
    return AdminOrderList(orders=orders, total=total, limit=limit, offset=offset)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(
    order_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await order_service.get_order(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Overwrite an order's status.

    Admin changes are not checked against the customer lifecycle. Moving an
    order to SHIPPED sends a best-effort shipping notification.
    """
    order, previous = await order_service.update_status(db, order_id, payload.status)
    await db.commit()

    logger.info(f"Admin {admin.id} set order {order_id} status {previous.value} -> {order.status.value}")

    if order.status == OrderStatus.SHIPPED and previous != OrderStatus.SHIPPED and order.user_id:
        customer = await db.get(User, order.user_id)
        if customer:
            await email_service.send_shipping_notification(customer.email, customer.name, order)

    return await order_service.reload(db, order_id)
