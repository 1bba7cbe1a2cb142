"""
Checkout initiation

Resolves cart lines against the catalog, computes totals and opens a Stripe
Checkout Session. Nothing is persisted here; the order is created later by
the checkout.session.completed webhook from the metadata written below.
"""
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.core.utils import to_money, dollars_to_cents
from storefront.models import Address, Product, User
from storefront.schemas.checkout import CheckoutItem
from storefront.services.payment_gateway import CheckoutSession, StripeGateway

logger = logging.getLogger(__name__)


@dataclass
class CheckoutTotals:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


@dataclass
class PricedLine:
    product: Product
    quantity: int

    @property
    def unit_price(self) -> Decimal:
        return to_money(self.product.price)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class CheckoutPlan:
    lines: List[PricedLine]
    totals: CheckoutTotals
    shipping_address_id: int
    line_items: List[Dict] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)


def compute_totals(
    subtotal,
    free_shipping_threshold: Optional[Decimal] = None,
    shipping_fee: Optional[Decimal] = None,
    tax_rate: Optional[Decimal] = None,
) -> CheckoutTotals:
    """
    Shipping is free strictly above the threshold. Tax is charged on the
    subtotal only and rounded half-up to cents.
    """
    threshold = settings.FREE_SHIPPING_THRESHOLD if free_shipping_threshold is None else free_shipping_threshold
    fee = settings.SHIPPING_FEE if shipping_fee is None else shipping_fee
    rate = settings.TAX_RATE if tax_rate is None else tax_rate

    subtotal = to_money(subtotal)
    shipping = Decimal("0.00") if subtotal > to_money(threshold) else to_money(fee)
    tax = to_money(subtotal * Decimal(str(rate)))
    return CheckoutTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
    )


def build_line_items(lines: List[PricedLine], totals: CheckoutTotals) -> List[Dict]:
    """Stripe line items: one per product, then shipping (if any) and tax."""
    currency = settings.STRIPE_CURRENCY
    line_items = []
    for line in lines:
        product_data = {"name": line.product.name}
        if line.product.description:
            product_data["description"] = line.product.description[:500]
        if line.product.primary_image:
            product_data["images"] = [line.product.primary_image]
        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": product_data,
                "unit_amount": dollars_to_cents(line.unit_price),
            },
            "quantity": line.quantity,
        })

    if totals.shipping > 0:
        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": {"name": "Shipping"},
                "unit_amount": dollars_to_cents(totals.shipping),
            },
            "quantity": 1,
        })

    tax_percent = (Decimal(str(settings.TAX_RATE)) * 100).normalize()
    line_items.append({
        "price_data": {
            "currency": currency,
            "product_data": {"name": f"Tax ({tax_percent:f}%)"},
            "unit_amount": dollars_to_cents(totals.tax),
        },
        "quantity": 1,
    })
    return line_items


def build_metadata(
    user_id: int,
    shipping_address_id: int,
    lines: List[PricedLine],
    totals: CheckoutTotals,
) -> Dict[str, str]:
    """Everything the webhook needs to rebuild the order. Stripe metadata values are strings."""
    cart_items = [
        {"id": line.product.id, "quantity": line.quantity, "price": float(line.unit_price)}
        for line in lines
    ]
    return {
        "user_id": str(user_id),
        "shipping_address_id": str(shipping_address_id),
        "cart_items": json.dumps(cart_items, separators=(",", ":")),
        "subtotal": str(totals.subtotal),
        "shipping": str(totals.shipping),
        "tax": str(totals.tax),
        "total": str(totals.total),
    }


async def prepare_checkout(
    db: AsyncSession,
    user: User,
    items: List[CheckoutItem],
    shipping_address_id: Optional[int],
) -> CheckoutPlan:
    """
    Validate the request and price it from the catalog.

    Raises:
        ValidationError: empty cart, missing or foreign address
        NotFoundError: unknown or inactive product
    """
    if not items:
        raise ValidationError("Cart is empty")
    if not shipping_address_id:
        raise ValidationError("Shipping address is required")

    result = await db.execute(
        select(Address).where(
            Address.id == shipping_address_id,
            Address.user_id == user.id,
        )
    )
    if result.scalar_one_or_none() is None:
        raise ValidationError("Invalid shipping address")

    # Merge duplicate product lines
    quantities: Dict[int, int] = {}
    for item in items:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

    result = await db.execute(
        select(Product).where(
            Product.id.in_(list(quantities.keys())),
            Product.active == True,  # noqa: E712
        )
    )
    products = {p.id: p for p in result.scalars().all()}

    lines = []
    for product_id, quantity in quantities.items():
        product = products.get(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
        lines.append(PricedLine(product=product, quantity=quantity))

    totals = compute_totals(sum((line.line_total for line in lines), Decimal("0")))
    return CheckoutPlan(
        lines=lines,
        totals=totals,
        shipping_address_id=shipping_address_id,
        line_items=build_line_items(lines, totals),
        metadata=build_metadata(user.id, shipping_address_id, lines, totals),
    )


def open_checkout_session(
    gateway: StripeGateway,
    user: User,
    plan: CheckoutPlan,
) -> CheckoutSession:
    """Create the hosted session. PaymentError propagates to the caller."""
    session = gateway.create_checkout_session(
        line_items=plan.line_items,
        metadata=plan.metadata,
        success_url=f"{settings.APP_URL}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{settings.APP_URL}/checkout/cancel",
        customer_email=user.email,
    )
    logger.info(
        f"Checkout session {session.id} created for user {user.id} "
        f"(items={len(plan.lines)}, total={plan.totals.total})"
    )
    return session
