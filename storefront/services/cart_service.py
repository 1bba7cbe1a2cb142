"""
Cart service

The server-side cart is the durable cart for a signed-in user. Line
quantities are bounded by product inventory at the moment each line is
written, and every write refreshes the line's price snapshot.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Tuple

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.models import Cart, CartItem, Product
from storefront.schemas.cart import CartSyncItem

logger = logging.getLogger(__name__)


async def get_or_create_cart(db: AsyncSession, user_id: int) -> Cart:
    result = await db.execute(select(Cart).where(Cart.user_id == user_id))
    cart = result.scalar_one_or_none()
    if cart:
        return cart

    cart = Cart(user_id=user_id)
    db.add(cart)
    await db.flush()
    return cart


async def get_cart_items(db: AsyncSession, user_id: int) -> List[CartItem]:
    result = await db.execute(
        select(CartItem)
        .join(Cart, CartItem.cart_id == Cart.id)
        .where(Cart.user_id == user_id)
        .options(selectinload(CartItem.product))
        .order_by(CartItem.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def summarize(items: List[CartItem]) -> Tuple[Decimal, int]:
    """(subtotal from price snapshots, total quantity)"""
    subtotal = sum((Decimal(str(item.price)) * item.quantity for item in items), Decimal("0.00"))
    return subtotal, sum(item.quantity for item in items)


async def _get_active_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product or not product.active:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


async def _get_user_item(db: AsyncSession, user_id: int, item_id: int) -> CartItem:
    result = await db.execute(
        select(CartItem)
        .join(Cart, CartItem.cart_id == Cart.id)
        .where(CartItem.id == item_id, Cart.user_id == user_id)
        .options(selectinload(CartItem.product))
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError("Cart item not found", details={"item_id": item_id})
    return item


async def add_item(db: AsyncSession, user_id: int, product_id: int, quantity: int) -> CartItem:
    """Add a product, merging into an existing line if present."""
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")

    product = await _get_active_product(db, product_id)
    cart = await get_or_create_cart(db, user_id)

    result = await db.execute(
        select(CartItem).where(
            CartItem.cart_id == cart.id,
            CartItem.product_id == product_id,
        )
    )
    item = result.scalar_one_or_none()
    new_quantity = (item.quantity if item else 0) + quantity

    if new_quantity > product.inventory:
        raise ValidationError(
            f"Only {product.inventory} items available",
            code="INSUFFICIENT_INVENTORY",
            details={"available": product.inventory, "requested": new_quantity},
        )

    if item:
        item.quantity = new_quantity
        item.price = product.price
    else:
        item = CartItem(
            cart_id=cart.id,
            product_id=product_id,
            quantity=new_quantity,
            price=product.price,
        )
        db.add(item)

    await db.flush()
    return item


async def update_item(db: AsyncSession, user_id: int, item_id: int, quantity: int) -> CartItem:
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")

    item = await _get_user_item(db, user_id, item_id)
    if quantity > item.product.inventory:
        raise ValidationError(
            f"Only {item.product.inventory} items available",
            code="INSUFFICIENT_INVENTORY",
            details={"available": item.product.inventory, "requested": quantity},
        )

    item.quantity = quantity
    item.price = item.product.price
    await db.flush()
    return item


async def remove_item(db: AsyncSession, user_id: int, item_id: int) -> None:
    item = await _get_user_item(db, user_id, item_id)
    await db.delete(item)
    await db.flush()


async def clear_cart(db: AsyncSession, user_id: int) -> None:
    cart_ids = select(Cart.id).where(Cart.user_id == user_id).scalar_subquery()
    await db.execute(
        delete(CartItem)
        .where(CartItem.cart_id.in_(cart_ids))
        .execution_options(synchronize_session=False)
    )


async def sync_cart(db: AsyncSession, user_id: int, local_items: List[CartSyncItem]) -> List[CartItem]:
    """
    Merge a client-side cart into the server cart.

    Missing or inactive products are skipped. An existing line keeps the
    larger of the two quantities; a new line takes the local quantity.
    Quantities are capped at current inventory and lines that end up at
    zero are not created (existing ones are dropped). Prices are refreshed
    from the catalog.
    """
    cart = await get_or_create_cart(db, user_id)

    # Collapse duplicate local lines
    local: Dict[int, int] = {}
    for entry in local_items:
        local[entry.product_id] = max(local.get(entry.product_id, 0), entry.quantity)

    if local:
        result = await db.execute(
            select(Product).where(Product.id.in_(list(local.keys())))
        )
        products = {p.id: p for p in result.scalars().all()}

        result = await db.execute(select(CartItem).where(CartItem.cart_id == cart.id))
        existing = {item.product_id: item for item in result.scalars().all()}

        for product_id, local_quantity in local.items():
            product = products.get(product_id)
            if not product or not product.active:
                logger.info(f"Cart sync skipped product {product_id} for user {user_id}: unavailable")
                continue

            item = existing.get(product_id)
            wanted = max(item.quantity, local_quantity) if item else local_quantity
            quantity = min(wanted, max(product.inventory, 0))

            if item and quantity > 0:
                item.quantity = quantity
                item.price = product.price
            elif item:
                # Sold out since it was added
                await db.delete(item)
            elif quantity > 0:
                db.add(CartItem(
                    cart_id=cart.id,
                    product_id=product_id,
                    quantity=quantity,
                    price=product.price,
                ))

        await db.flush()

    return await get_cart_items(db, user_id)


async def validate_cart(db: AsyncSession, user_id: int) -> Dict:
    """Report lines whose product is inactive or under-stocked."""
    items = await get_cart_items(db, user_id)
    issues = []
    for item in items:
        product = item.product
        if not product.active:
            issues.append({
                "item_id": item.id,
                "product_id": product.id,
                "issue": "Product is no longer available",
                "available": 0,
            })
        elif item.quantity > product.inventory:
            issues.append({
                "item_id": item.id,
                "product_id": product.id,
                "issue": f"Only {product.inventory} items available",
                "available": product.inventory,
            })

    return {"valid": not issues, "issues": issues}
