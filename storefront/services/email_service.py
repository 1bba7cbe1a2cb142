"""
Transactional email

EmailService renders order confirmation, shipping notification and welcome
messages and hands them to an EmailProvider. ResendProvider posts to the
Resend REST API; MockEmailProvider only logs and is used when no API key is
configured.

Every send is a single attempt. Failures are logged and reported as False;
nothing here raises into the caller.
"""
import html
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from storefront.core.config import settings
from storefront.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailProvider(Protocol):
    """Protocol for email providers."""

    async def send(self, to_email: str, subject: str, html_body: str) -> SendResult:
        ...


class MockEmailProvider:
    """Mock provider for development/testing."""

    async def send(self, to_email: str, subject: str, html_body: str) -> SendResult:
        logger.info(
            f"[MOCK EMAIL] To: {to_email}\n"
            f"  Subject: {subject}\n"
            f"  Body: {len(html_body)} chars"
        )
        return SendResult(success=True, message_id="mock")


class ResendProvider:
    """Resend email provider."""

    BASE_URL = "https://api.resend.com"

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        self.api_key = api_key or settings.RESEND_API_KEY
        self.from_email = from_email or settings.EMAIL_FROM
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=15.0,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._http_client

    async def close(self):
        """Explicit cleanup method."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def send(self, to_email: str, subject: str, html_body: str) -> SendResult:
        http = await self._get_http_client()
        payload = {
            "from": self.from_email,
            "to": [to_email],
            "subject": subject,
            "html": html_body,
        }

        try:
            resp = await http.post(f"{self.BASE_URL}/emails", json=payload)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Resend request failed: {e}") from e

        if resp.status_code in (200, 201, 202):
            return SendResult(success=True, message_id=resp.json().get("id"))
        return SendResult(success=False, error=f"{resp.status_code}: {resp.text[:200]}")


def _money(value) -> str:
    return f"${float(value or 0):.2f}"


def render_order_confirmation(
    customer_name: str,
    order: Any,
    shipping_address: Optional[Dict[str, Any]] = None,
) -> str:
    """HTML body for the order confirmation email."""
    rows = "".join(
        f"<tr><td>{html.escape(item.product_name)}</td>"
        f"<td>{item.quantity}</td>"
        f"<td>{_money(item.price)}</td>"
        f"<td>{_money(item.price * item.quantity)}</td></tr>"
        for item in order.items
    )

    address_html = ""
    if shipping_address:
        address_html = (
            "<h3>Shipping to</h3><p>"
            f"{html.escape(shipping_address['street'])}<br>"
            f"{html.escape(shipping_address['city'])}, {html.escape(shipping_address['state'])} "
            f"{html.escape(shipping_address['zip_code'])}<br>"
            f"{html.escape(shipping_address['country'])}</p>"
        )

    order_date = order.created_at.strftime("%B %d, %Y") if order.created_at else ""
    return (
        f"<h1>Thank you for your order, {html.escape(customer_name)}!</h1>"
        f"<p>Order <strong>{html.escape(order.order_number)}</strong> placed {order_date}</p>"
        "<table><tr><th>Item</th><th>Qty</th><th>Price</th><th>Total</th></tr>"
        f"{rows}</table>"
        f"<p>Subtotal: {_money(order.subtotal)}<br>"
        f"Shipping: {_money(order.shipping)}<br>"
        f"Tax: {_money(order.tax)}<br>"
        f"<strong>Total: {_money(order.total)}</strong></p>"
        f"{address_html}"
        f'<p><a href="{settings.APP_URL}/orders/{order.id}">View your order</a></p>'
    )


def render_shipping_notification(customer_name: str, order: Any) -> str:
    return (
        f"<h1>Your order is on its way, {html.escape(customer_name)}!</h1>"
        f"<p>Order <strong>{html.escape(order.order_number)}</strong> has shipped.</p>"
        f'<p><a href="{settings.APP_URL}/orders/{order.id}">Track your order</a></p>'
    )


def render_welcome(customer_name: str) -> str:
    return (
        f"<h1>Welcome to {html.escape(settings.APP_NAME)}, {html.escape(customer_name)}!</h1>"
        "<p>Your account is ready. You start at the Bronze loyalty tier and earn "
        "points on every purchase.</p>"
        f'<p><a href="{settings.APP_URL}/products">Start shopping</a></p>'
    )


class EmailService:
    """Email service wrapper."""

    def __init__(self, provider: Optional[EmailProvider] = None):
        self.provider = provider or MockEmailProvider()

    async def _deliver(self, kind: str, to_email: str, subject: str, html_body: str) -> bool:
        try:
            result = await self.provider.send(to_email, subject, html_body)
        except Exception as e:
            logger.error(f"Failed to send {kind} email to {to_email}: {e}")
            return False

        if not result.success:
            logger.error(f"Failed to send {kind} email to {to_email}: {result.error}")
            return False

        logger.info(f"Sent {kind} email to {to_email} (id={result.message_id})")
        return True

    async def send_order_confirmation(
        self,
        to_email: str,
        customer_name: str,
        order: Any,
        shipping_address: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Send order confirmation email."""
        try:
            body = render_order_confirmation(customer_name, order, shipping_address)
        except Exception as e:
            logger.error(f"Failed to render confirmation for order {getattr(order, 'id', None)}: {e}")
            return False
        return await self._deliver(
            "order confirmation",
            to_email,
            f"Order Confirmation - {order.order_number}",
            body,
        )

    async def send_shipping_notification(self, to_email: str, customer_name: str, order: Any) -> bool:
        """Send shipping notification email."""
        return await self._deliver(
            "shipping notification",
            to_email,
            f"Your order {order.order_number} has shipped",
            render_shipping_notification(customer_name, order),
        )

    async def send_welcome(self, to_email: str, customer_name: str) -> bool:
        return await self._deliver(
            "welcome",
            to_email,
            f"Welcome to {settings.APP_NAME}",
            render_welcome(customer_name),
        )


# Singleton instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get email service instance."""
    global _email_service
    if _email_service is None:
        provider: EmailProvider
        if settings.RESEND_API_KEY:
            provider = ResendProvider()
        else:
            logger.warning("RESEND_API_KEY not configured, emails will be logged only")
            provider = MockEmailProvider()
        _email_service = EmailService(provider)
    return _email_service
