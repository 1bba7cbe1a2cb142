"""
Stripe payment gateway

Thin wrapper over the Stripe SDK so route handlers depend on an injectable
object instead of module-level stripe state. Tests swap it out through
app.dependency_overrides[get_payment_gateway].
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import stripe

from storefront.core.config import settings
from storefront.core.exceptions import PaymentError, WebhookSignatureError

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str] = None


class StripeGateway:
    """Checkout Session creation and webhook verification."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET

    @property
    def webhook_configured(self) -> bool:
        return bool(self.webhook_secret)

    def create_checkout_session(
        self,
        line_items: List[Dict[str, Any]],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Create a hosted Checkout Session in payment mode.

        Single attempt. Any SDK error is raised as PaymentError.
        """
        if not self.secret_key:
            raise PaymentError("Stripe is not configured", code="STRIPE_NOT_CONFIGURED")

        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=line_items,
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
                customer_email=customer_email,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session creation failed: {e}")
            raise PaymentError(
                "Failed to create checkout session",
                details={"stripe_error": str(e)},
            ) from e

        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a webhook payload and return the event as a plain dict.

        Raises:
            PaymentError: webhook secret not configured
            WebhookSignatureError: bad payload or bad signature
        """
        if not self.webhook_secret:
            raise PaymentError("Webhook secret not configured", code="WEBHOOK_NOT_CONFIGURED")

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            logger.warning(f"Invalid webhook payload: {e}")
            raise WebhookSignatureError("Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Invalid webhook signature: {e}")
            raise WebhookSignatureError("Invalid signature") from e

        return json.loads(payload)


def get_payment_gateway() -> StripeGateway:
    """Dependency returning the configured gateway."""
    return StripeGateway()
