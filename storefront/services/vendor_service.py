"""
VendorService - marketplace seller accounts

Vendor applications and the seller dashboard figures. Revenue is derived
from order items of the vendor's products in orders that were not
cancelled, so it always agrees with order history.
"""
import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import NotFoundError, StateConflictError
from storefront.core.utils import to_money
from storefront.models import Order, OrderItem, OrderStatus, Product, User, Vendor, VendorStatus
from storefront.schemas.vendor import VendorApply, VendorRecentOrder, VendorStats

logger = logging.getLogger(__name__)

OPEN_ORDER_STATUSES = [OrderStatus.PENDING, OrderStatus.PROCESSING]
RECENT_ORDER_LIMIT = 10


def _vendor_orders(vendor_id: int):
    """Ids of orders containing at least one of the vendor's products."""
    return (
        select(OrderItem.order_id)
        .join(Product, OrderItem.product_id == Product.id)
        .where(Product.vendor_id == vendor_id)
    )


class VendorService:
    """Vendor application and dashboard service."""

    @staticmethod
    async def apply(db: AsyncSession, user: User, data: VendorApply) -> Vendor:
        """
        Create a PENDING vendor account for the user and flag the user as a
        vendor. One application per user; business emails are unique.
        """
        business_email = data.business_email.lower()

        taken = await db.scalar(select(Vendor.id).where(Vendor.business_email == business_email))
        if taken:
            raise StateConflictError(
                "Business email is already registered",
                code="BUSINESS_EMAIL_TAKEN",
            )

        existing = await db.scalar(select(Vendor.id).where(Vendor.user_id == user.id))
        if existing:
            raise StateConflictError(
                "You already have a vendor application",
                code="VENDOR_APPLICATION_EXISTS",
            )

        vendor = Vendor(
            user_id=user.id,
            business_name=data.business_name,
            business_email=business_email,
            business_phone=data.business_phone or None,
            description=data.description,
            address=data.address or None,
            city=data.city or None,
            country=data.country,
            tax_id=data.tax_id or None,
            status=VendorStatus.PENDING,
            commission=settings.VENDOR_COMMISSION_PERCENT,
        )
        db.add(vendor)
        user.is_vendor = True
        await db.flush()

        logger.info(f"Vendor application {vendor.id} submitted by user {user.id}")
        return vendor

    @staticmethod
    async def get_for_user(db: AsyncSession, user_id: int) -> Vendor:
        vendor = await db.scalar(select(Vendor).where(Vendor.user_id == user_id))
        if not vendor:
            raise NotFoundError(
                "Vendor account not found. Please apply to become a vendor first.",
                code="VENDOR_NOT_FOUND",
            )
        return vendor

    @staticmethod
    async def get_stats(db: AsyncSession, vendor: Vendor) -> VendorStats:
        total_products = await db.scalar(
            select(func.count(Product.id)).where(
                Product.vendor_id == vendor.id,
                Product.active == True,  # noqa: E712
            )
        )

        sales = await db.scalar(
            select(func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0))
            .select_from(OrderItem)
            .join(Product, OrderItem.product_id == Product.id)
            .join(Order, OrderItem.order_id == Order.id)
            .where(Product.vendor_id == vendor.id, Order.status != OrderStatus.CANCELLED)
        )

        pending_orders = await db.scalar(
            select(func.count(Order.id)).where(
                Order.id.in_(_vendor_orders(vendor.id)),
                Order.status.in_(OPEN_ORDER_STATUSES),
            )
        )

        result = await db.execute(
            select(Order)
            .where(Order.id.in_(_vendor_orders(vendor.id)))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(RECENT_ORDER_LIMIT)
        )
        recent = result.scalars().all()

        revenue = to_money(sales)
        commission = to_money(revenue * Decimal(vendor.commission) / 100)

        return VendorStats(
            business_name=vendor.business_name,
            status=vendor.status,
            total_sales=float(revenue),
            revenue=float(revenue),
            commission=float(commission),
            net_earnings=float(revenue - commission),
            total_products=total_products or 0,
            pending_orders=pending_orders or 0,
            recent_orders=[
                VendorRecentOrder(
                    id=order.id,
                    order_number=order.order_number,
                    status=order.status,
                    total=float(order.total),
                    created_at=order.created_at,
                )
                for order in recent
            ],
        )


vendor_service = VendorService()
