"""
Checkout routes

Opens a Stripe Checkout Session priced from the catalog. No order exists
until the processor reports the session completed (see webhooks.py).
"""
import time
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.rate_limit import limiter
from storefront.models.user import User
from storefront.schemas.checkout import (
    CheckoutRequest,
    CheckoutSessionResponse,
    CheckoutConfigResponse,
)
from storefront.services.checkout_service import prepare_checkout, open_checkout_session
from storefront.services.payment_gateway import StripeGateway
from storefront.api.deps import get_current_user, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=CheckoutSessionResponse)
@limiter.limit(settings.RATE_LIMIT_CHECKOUT)
async def create_checkout(
    request: Request,
    payload: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """
    Create a hosted checkout session.

    1. Reject empty carts and addresses the caller does not own
    2. Resolve unit prices from the catalog
    3. Compute shipping and tax
    4. Create the Stripe session with everything the webhook needs in metadata
    """
    start_time = time.time()

    plan = await prepare_checkout(
        db,
        current_user,
        payload.cart_items,
        payload.shipping_address_id,
    )
    session = open_checkout_session(gateway, current_user, plan)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"CHECKOUT_METRIC: session_created "
        f"user_id={current_user.id} "
        f"session_id={session.id} "
        f"total={plan.totals.total} "
        f"item_count={len(plan.lines)} "
        f"duration_ms={duration_ms:.2f}"
    )

    return CheckoutSessionResponse(session_id=session.id, url=session.url)


@router.get("/config", response_model=CheckoutConfigResponse)
async def get_checkout_config():
    """Publishable key for the frontend Stripe client."""
    return CheckoutConfigResponse(
        publishable_key=settings.STRIPE_PUBLISHABLE_KEY,
        currency=settings.STRIPE_CURRENCY,
    )
