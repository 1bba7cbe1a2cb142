"""
Stripe webhook receiver

Verifies the signature, then turns checkout.session.completed into an
order. Order creation is the only step whose failure fails the response
(so Stripe retries); redelivery is safe because orders are unique per
checkout session. Loyalty points and the confirmation email run after the
order commits and are isolated from each other and from the response.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.models import Address, Product, User
from storefront.schemas.checkout import SessionMetadata
from storefront.services.email_service import EmailService
from storefront.services.loyalty_service import award_purchase_points
from storefront.services.order_service import OrderLine, order_service
from storefront.services.payment_gateway import StripeGateway
from storefront.api.deps import get_email_service, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()

LOGGED_ONLY_EVENTS = {
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
    "charge.succeeded",
    "charge.failed",
}


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Handle Stripe webhooks.

    Signature verification fails closed: a missing header or a bad
    signature is a 400 and nothing is written.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if not sig_header:
        logger.warning("Stripe webhook missing signature header")
        raise HTTPException(status_code=400, detail="Missing signature")

    if not gateway.webhook_configured:
        logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Webhook not configured")

    # WebhookSignatureError renders as 400
    event = gateway.construct_event(payload, sig_header)

    event_type = event.get("type")
    event_id = event.get("id")
    data_object = (event.get("data") or {}).get("object") or {}
    logger.info(f"Stripe webhook received: {event_type} (event_id={event_id})")

    if event_type == "checkout.session.completed":
        await handle_checkout_completed(db, data_object, email_service)
    elif event_type in LOGGED_ONLY_EVENTS:
        logger.info(f"Stripe {event_type}: {data_object.get('id')}")
    else:
        logger.info(f"Unhandled webhook event type: {event_type}")

    return {"received": True}


def parse_session_metadata(session: Dict[str, Any]) -> Optional[SessionMetadata]:
    """Validated metadata, or None if it is missing or malformed."""
    metadata = session.get("metadata") or {}
    if not metadata:
        return None
    try:
        return SessionMetadata.model_validate(metadata)
    except PydanticValidationError as e:
        logger.error(
            f"Checkout session {session.get('id')} has invalid metadata: "
            f"{e.error_count()} errors ({e.errors(include_url=False, include_input=False)})"
        )
        return None


async def handle_checkout_completed(
    db: AsyncSession,
    session: Dict[str, Any],
    email_service: EmailService,
) -> None:
    session_id = session.get("id")
    metadata = parse_session_metadata(session)
    if metadata is None:
        # Acknowledge: retrying cannot fix the metadata
        logger.error(f"Checkout session {session_id} completed without usable metadata; no order created")
        return

    existing = await order_service.check_existing_order(db, session_id)
    if existing:
        logger.info(f"Order {existing.order_number} already exists for session {session_id}")
        return

    user = await db.get(User, metadata.user_id)
    if not user:
        logger.error(f"Checkout session {session_id} references unknown user {metadata.user_id}")
        return

    # Fresh lookup so names reflect the catalog at settlement
    product_ids = [item.id for item in metadata.cart_items]
    result = await db.execute(
        select(Product.id, Product.name).where(Product.id.in_(product_ids))
    )
    names = {row.id: row.name for row in result.all()}

    lines = [
        OrderLine(
            product_id=item.id if item.id in names else None,
            quantity=item.quantity,
            price=item.price,
            product_name=names.get(item.id, "Unknown Product"),
        )
        for item in metadata.cart_items
    ]

    try:
        order = await order_service.create_order(
            db,
            user_id=metadata.user_id,
            lines=lines,
            subtotal=metadata.subtotal,
            shipping=metadata.shipping,
            tax=metadata.tax,
            total=metadata.total,
            shipping_address_id=metadata.shipping_address_id,
            stripe_session_id=session_id,
            currency_code=(session.get("currency") or "usd"),
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # Concurrent delivery of the same event won the insert
        existing = await order_service.check_existing_order(db, session_id)
        if existing:
            logger.info(f"Order for session {session_id} created concurrently; acknowledging")
            return
        logger.error(f"Order creation failed for session {session_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Order creation failed")
    except Exception:
        await db.rollback()
        logger.error(f"Order creation failed for session {session_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Order creation failed")

    order_id = order.id
    subtotal = order.subtotal
    to_email, customer_name = user.email, user.name
    logger.info(f"Order {order.order_number} created from checkout session {session_id}")

    # Isolated side effects; neither may fail the webhook
    await award_purchase_points(db, metadata.user_id, subtotal, order_id)
    await send_order_confirmation(db, email_service, order_id, to_email, customer_name)


async def send_order_confirmation(
    db: AsyncSession,
    email_service: EmailService,
    order_id: int,
    to_email: str,
    customer_name: str,
) -> bool:
    try:
        order = await order_service.reload(db, order_id)
        address = None
        if order.shipping_address_id:
            address_row = await db.get(Address, order.shipping_address_id)
            address = address_row.to_snapshot() if address_row else None
        return await email_service.send_order_confirmation(to_email, customer_name, order, address)
    except Exception as e:
        logger.error(f"Order confirmation email failed for order {order_id}: {e}")
        return False
