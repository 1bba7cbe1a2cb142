"""
Tests for outbound integrations: Resend email and S3 image storage.
"""
import json
from types import SimpleNamespace
from decimal import Decimal
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from storefront.core.exceptions import StorageError, ValidationError
from storefront.services.email_service import (
    EmailService,
    ResendProvider,
    render_order_confirmation,
)
from storefront.services.storage import StorageService


def fake_order():
    return SimpleNamespace(
        id=12,
        order_number="ORD-20261019-ABCDEF12",
        created_at=datetime(2026, 10, 19, tzinfo=timezone.utc),
        subtotal=Decimal("40.00"),
        shipping=Decimal("5.99"),
        tax=Decimal("4.00"),
        total=Decimal("49.99"),
        items=[SimpleNamespace(product_name="Lamp <deluxe>", quantity=2, price=Decimal("20.00"))],
    )


def resend_with(handler) -> ResendProvider:
    provider = ResendProvider(api_key="re_test", from_email="shop@example.com")
    provider._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return provider


class TestEmail:
    """EmailService + ResendProvider"""

    def test_confirmation_body(self):
        body = render_order_confirmation(
            "Alice",
            fake_order(),
            {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "US"},
        )

        assert "ORD-20261019-ABCDEF12" in body
        assert "Lamp &lt;deluxe&gt;" in body
        assert "$49.99" in body
        assert "Springfield" in body

    @pytest.mark.asyncio
    async def test_resend_posts_message(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email_123"})

        service = EmailService(resend_with(handler))
        sent = await service.send_order_confirmation("alice@example.com", "Alice", fake_order())

        assert sent is True
        assert captured["url"] == "https://api.resend.com/emails"
        assert captured["body"]["to"] == ["alice@example.com"]
        assert captured["body"]["from"] == "shop@example.com"
        assert captured["body"]["subject"] == "Order Confirmation - ORD-20261019-ABCDEF12"

    @pytest.mark.asyncio
    async def test_provider_rejection_reported_as_false(self):
        service = EmailService(resend_with(lambda request: httpx.Response(422, text="bad from")))

        assert await service.send_welcome("bob@example.com", "Bob") is False

    @pytest.mark.asyncio
    async def test_transport_error_reported_as_false(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = EmailService(resend_with(handler))

        assert await service.send_shipping_notification("bob@example.com", "Bob", fake_order()) is False


class TestStorage:
    """StorageService against a mocked S3 client"""

    def test_upload_puts_object_and_returns_public_url(self):
        client = MagicMock()
        storage = StorageService(client=client)

        result = storage.upload_product_image(b"\x89PNG....", "Cover Art.png", "image/png", product_id=3)

        assert result.key.startswith("products/3/")
        assert result.key.endswith("_coverart.png")
        assert result.url == storage.get_public_url(result.key)
        assert storage.key_from_url(result.url) == result.key
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["ContentType"] == "image/png"
        assert kwargs["Key"] == result.key

    def test_rejects_wrong_magic_bytes(self):
        storage = StorageService(client=MagicMock())

        with pytest.raises(ValidationError):
            storage.upload_product_image(b"not a png", "x.png", "image/png", product_id=1)

    def test_rejects_unsupported_type(self):
        storage = StorageService(client=MagicMock())

        with pytest.raises(ValidationError):
            storage.upload_product_image(b"%PDF", "x.pdf", "application/pdf", product_id=1)

    def test_host_failure_raises_storage_error(self):
        client = MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        storage = StorageService(client=client)

        with pytest.raises(StorageError):
            storage.upload_product_image(b"\xff\xd8\xff", "x.jpg", "image/jpeg", product_id=1)

    def test_foreign_url_has_no_key(self):
        storage = StorageService(client=MagicMock())

        assert storage.key_from_url("https://elsewhere.example.com/a.png") is None
