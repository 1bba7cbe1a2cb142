"""
Tests for checkout initiation: totals, Stripe line items, session metadata
and the POST /api/checkout endpoint.
"""
import json
from decimal import Decimal

import pytest

from storefront.services.checkout_service import (
    CheckoutTotals,
    PricedLine,
    build_line_items,
    build_metadata,
    compute_totals,
)
from tests.conftest import auth_headers


class TestComputeTotals:
    """Shipping and tax rules."""

    def test_below_threshold_pays_shipping(self):
        totals = compute_totals(Decimal("40.00"))

        assert totals.subtotal == Decimal("40.00")
        assert totals.shipping == Decimal("5.99")
        assert totals.tax == Decimal("4.00")
        assert totals.total == Decimal("49.99")

    def test_above_threshold_ships_free(self):
        totals = compute_totals(Decimal("60.00"))

        assert totals.shipping == Decimal("0.00")
        assert totals.tax == Decimal("6.00")
        assert totals.total == Decimal("66.00")

    def test_exact_threshold_still_pays_shipping(self):
        """Free shipping is strictly above the threshold."""
        totals = compute_totals(Decimal("50.00"))

        assert totals.shipping == Decimal("5.99")
        assert totals.total == Decimal("60.99")

    def test_tax_rounds_half_up_to_cents(self):
        totals = compute_totals(Decimal("0.05"))

        # 0.005 -> 0.01
        assert totals.tax == Decimal("0.01")

    def test_overrides(self):
        totals = compute_totals(
            Decimal("20.00"),
            free_shipping_threshold=Decimal("10"),
            shipping_fee=Decimal("3"),
            tax_rate=Decimal("0"),
        )

        assert totals.shipping == Decimal("0.00")
        assert totals.tax == Decimal("0.00")
        assert totals.total == Decimal("20.00")


class TestLineItemsAndMetadata:
    """Stripe payload building."""

    @pytest.mark.asyncio
    async def test_line_items_include_shipping_and_tax(self, make_product):
        product = await make_product(name="Lamp", price="20.00", description="Desk lamp")
        lines = [PricedLine(product=product, quantity=2)]
        totals = compute_totals(Decimal("40.00"))

        items = build_line_items(lines, totals)

        assert len(items) == 3
        assert items[0]["price_data"]["unit_amount"] == 2000
        assert items[0]["quantity"] == 2
        assert items[0]["price_data"]["product_data"]["description"] == "Desk lamp"
        assert items[1]["price_data"]["product_data"]["name"] == "Shipping"
        assert items[1]["price_data"]["unit_amount"] == 599
        assert items[2]["price_data"]["product_data"]["name"] == "Tax (10%)"
        assert items[2]["price_data"]["unit_amount"] == 400

    @pytest.mark.asyncio
    async def test_free_shipping_omits_shipping_line(self, make_product):
        product = await make_product(price="30.00")
        lines = [PricedLine(product=product, quantity=2)]

        items = build_line_items(lines, compute_totals(Decimal("60.00")))

        names = [item["price_data"]["product_data"]["name"] for item in items]
        assert "Shipping" not in names
        assert names[-1] == "Tax (10%)"

    @pytest.mark.asyncio
    async def test_metadata_values_are_strings(self, make_product):
        product = await make_product(price="12.50")
        lines = [PricedLine(product=product, quantity=3)]
        totals = CheckoutTotals(
            subtotal=Decimal("37.50"),
            shipping=Decimal("5.99"),
            tax=Decimal("3.75"),
            total=Decimal("47.24"),
        )

        metadata = build_metadata(7, 9, lines, totals)

        assert all(isinstance(value, str) for value in metadata.values())
        assert metadata["user_id"] == "7"
        assert metadata["shipping_address_id"] == "9"
        assert metadata["total"] == "47.24"
        assert json.loads(metadata["cart_items"]) == [
            {"id": product.id, "quantity": 3, "price": 12.5}
        ]


class TestCheckoutEndpoint:
    """POST /api/checkout"""

    @pytest.mark.asyncio
    async def test_creates_session_priced_from_catalog(self, client, gateway, user, make_product, make_address):
        product = await make_product(price="20.00")
        address = await make_address(user)

        response = await client.post(
            "/api/checkout",
            json={
                "cart_items": [{"product_id": product.id, "quantity": 2}],
                "shipping_address_id": address.id,
            },
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["session_id"] == "cs_test_1"
        assert body["url"].endswith("cs_test_1")

        session = gateway.sessions[0]
        assert session["customer_email"] == user.email
        assert session["metadata"]["subtotal"] == "40.00"
        assert session["metadata"]["shipping"] == "5.99"
        assert session["metadata"]["tax"] == "4.00"
        assert session["metadata"]["total"] == "49.99"
        assert "{CHECKOUT_SESSION_ID}" in session["success_url"]

    @pytest.mark.asyncio
    async def test_duplicate_lines_are_merged(self, client, gateway, user, make_product, make_address):
        product = await make_product(price="5.00")
        address = await make_address(user)

        response = await client.post(
            "/api/checkout",
            json={
                "cart_items": [
                    {"product_id": product.id, "quantity": 1},
                    {"product_id": product.id, "quantity": 2},
                ],
                "shipping_address_id": address.id,
            },
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        cart_items = json.loads(gateway.sessions[0]["metadata"]["cart_items"])
        assert cart_items == [{"id": product.id, "quantity": 3, "price": 5.0}]

    @pytest.mark.asyncio
    async def test_empty_cart_rejected(self, client, gateway, user, make_address):
        address = await make_address(user)

        response = await client.post(
            "/api/checkout",
            json={"cart_items": [], "shipping_address_id": address.id},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"
        assert gateway.sessions == []

    @pytest.mark.asyncio
    async def test_missing_address_rejected(self, client, user, make_product):
        product = await make_product()

        response = await client.post(
            "/api/checkout",
            json={"cart_items": [{"product_id": product.id, "quantity": 1}]},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Shipping address is required"

    @pytest.mark.asyncio
    async def test_foreign_address_rejected(self, client, gateway, user, make_user, make_product, make_address):
        other = await make_user()
        address = await make_address(other)
        product = await make_product()

        response = await client.post(
            "/api/checkout",
            json={
                "cart_items": [{"product_id": product.id, "quantity": 1}],
                "shipping_address_id": address.id,
            },
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid shipping address"
        assert gateway.sessions == []

    @pytest.mark.asyncio
    async def test_inactive_product_not_found(self, client, user, make_product, make_address):
        product = await make_product(active=False)
        address = await make_address(user)

        response = await client.post(
            "/api/checkout",
            json={
                "cart_items": [{"product_id": product.id, "quantity": 1}],
                "shipping_address_id": address.id,
            },
            headers=auth_headers(user),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_gateway_failure_is_server_error(self, client, gateway, user, make_product, make_address):
        gateway.fail = True
        product = await make_product()
        address = await make_address(user)

        response = await client.post(
            "/api/checkout",
            json={
                "cart_items": [{"product_id": product.id, "quantity": 1}],
                "shipping_address_id": address.id,
            },
            headers=auth_headers(user),
        )

        assert response.status_code == 500
        assert response.json()["error"] == "PAYMENT_ERROR"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client):
        response = await client.post("/api/checkout", json={"cart_items": []})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_config_exposes_publishable_key(self, client):
        response = await client.get("/api/checkout/config")

        assert response.status_code == 200
        assert response.json()["currency"] == "usd"
