"""
OrderService - order creation and lifecycle

Single place where orders are created (from a settled checkout session),
queried, moved between statuses and cancelled. Methods flush but do not
commit; the caller owns the transaction so multi-step changes (order, items,
inventory, cart clear) land together.
"""
import uuid
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from storefront.core.utils import utcnow, to_money
from storefront.models import (
    Cart,
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    User,
    ORDER_TRANSITIONS,
)

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = [s for s, targets in ORDER_TRANSITIONS.items() if OrderStatus.CANCELLED in targets]


@dataclass
class OrderLine:
    """One purchased line as recorded in checkout session metadata."""
    product_id: Optional[int]
    quantity: int
    price: Decimal
    product_name: str = "Unknown Product"


def _with_details(query):
    return query.options(
        selectinload(Order.items),
        selectinload(Order.shipping_address),
    )


class OrderService:
    """Order creation and lifecycle service."""

    @staticmethod
    def generate_order_number() -> str:
        """Generate unique order number in format ORD-YYYYMMDD-XXXXXXXX."""
        return f"ORD-{utcnow().strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"

    @staticmethod
    async def check_existing_order(
        db: AsyncSession,
        stripe_session_id: str
    ) -> Optional[Order]:
        """Check if an order already exists for this checkout session."""
        result = await db.execute(
            select(Order).where(Order.stripe_session_id == stripe_session_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create_order(
        db: AsyncSession,
        user_id: int,
        lines: List[OrderLine],
        subtotal,
        shipping,
        tax,
        total,
        shipping_address_id: Optional[int] = None,
        stripe_session_id: Optional[str] = None,
        currency_code: str = "USD",
    ) -> Order:
        """
        Create a PENDING order with item snapshots.

        In the same transaction: decrement inventory for each line and
        empty the user's cart. Inventory is decremented with a SQL-side
        expression and has no floor check.
        """
        if not lines:
            raise ValidationError("Order must contain at least one item")

        order = Order(
            user_id=user_id,
            order_number=OrderService.generate_order_number(),
            status=OrderStatus.PENDING,
            subtotal=to_money(subtotal),
            shipping=to_money(shipping),
            tax=to_money(tax),
            total=to_money(total),
            currency_code=currency_code.upper(),
            shipping_address_id=shipping_address_id,
            stripe_session_id=stripe_session_id,
            items=[
                OrderItem(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    price=to_money(line.price),
                    quantity=line.quantity,
                )
                for line in lines
            ],
        )
        db.add(order)
        await db.flush()

        for line in lines:
            if line.product_id is None:
                continue
            await db.execute(
                update(Product)
                .where(Product.id == line.product_id)
                .values(inventory=Product.inventory - line.quantity)
            )

        await OrderService.clear_user_cart(db, user_id)

        logger.info(
            f"Order {order.order_number} created for session {stripe_session_id} "
            f"(user={user_id}, total={order.total})"
        )
        return order

    @staticmethod
    async def clear_user_cart(db: AsyncSession, user_id: int) -> None:
        cart_ids = select(Cart.id).where(Cart.user_id == user_id).scalar_subquery()
        await db.execute(
            delete(CartItem)
            .where(CartItem.cart_id.in_(cart_ids))
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Order:
        result = await db.execute(
            _with_details(select(Order)).where(Order.id == order_id)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found", details={"order_id": order_id})
        return order

    @staticmethod
    async def get_user_order(db: AsyncSession, order_id: int, user_id: int) -> Order:
        """Load an order for its owner: 404 if unknown, 403 if owned by someone else."""
        order = await OrderService.get_order(db, order_id)
        if order.user_id != user_id:
            raise AuthorizationError("Not authorized to access this order")
        return order

    @staticmethod
    async def list_user_orders(
        db: AsyncSession,
        user_id: int,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Order], int]:
        total = await db.scalar(
            select(func.count(Order.id)).where(Order.user_id == user_id)
        )
        result = await db.execute(
            _with_details(select(Order))
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        """Admin listing across all users."""
        query = select(Order)
        count_query = select(func.count(Order.id))

        if status:
            status_enum = OrderService.parse_status(status)
            query = query.where(Order.status == status_enum)
            count_query = count_query.where(Order.status == status_enum)

        if search:
            pattern = f"%{search}%"
            condition = or_(
                Order.order_number.ilike(pattern),
                Order.user_id.in_(select(User.id).where(User.email.ilike(pattern))),
            )
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = await db.scalar(count_query)
        result = await db.execute(
            _with_details(query)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    def parse_status(value: str) -> OrderStatus:
        try:
            return OrderStatus(value.upper())
        except (ValueError, AttributeError):
            raise ValidationError(
                "Invalid status",
                details={"status": value, "allowed": [s.value for s in OrderStatus]},
            )

    @staticmethod
    async def update_status(
        db: AsyncSession,
        order_id: int,
        new_status: str,
    ) -> Tuple[Order, OrderStatus]:
        """
        Admin status change.

        The new status overwrites the current one without consulting
        ORDER_TRANSITIONS. Returns the order and its previous status.
        """
        status_enum = OrderService.parse_status(new_status)
        order = await OrderService.get_order(db, order_id)

        previous = order.status
        order.status = status_enum
        order.updated_at = utcnow()
        await db.flush()

        logger.info(f"Order {order.order_number} status {previous.value} -> {status_enum.value}")
        return order, previous

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: int, user_id: int) -> Order:
        """
        Customer-initiated cancel.

        Allowed only while ORDER_TRANSITIONS permits CANCELLED from the
        current status. The status flip is a conditional UPDATE so two
        concurrent cancels restore inventory once.
        """
        order = await OrderService.get_user_order(db, order_id, user_id)

        if order.status == OrderStatus.CANCELLED:
            raise StateConflictError("Order is already cancelled", code="ORDER_ALREADY_CANCELLED")
        if not order.is_cancellable:
            raise StateConflictError(
                "Cannot cancel order that has been shipped or delivered",
                code="ORDER_NOT_CANCELLABLE",
                details={"status": order.status.value},
            )

        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status.in_(CANCELLABLE_STATUSES))
            .values(status=OrderStatus.CANCELLED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StateConflictError("Order is already cancelled", code="ORDER_ALREADY_CANCELLED")

        for item in order.items:
            if item.product_id is None:
                continue
            await db.execute(
                update(Product)
                .where(Product.id == item.product_id)
                .values(inventory=Product.inventory + item.quantity)
            )

        await db.flush()
        logger.info(f"Order {order.order_number} cancelled by user {user_id}; inventory restored")

        return await OrderService.reload(db, order.id)

    @staticmethod
    async def reload(db: AsyncSession, order_id: int) -> Order:
        result = await db.execute(
            _with_details(select(Order))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()


# Singleton instance
order_service = OrderService()
