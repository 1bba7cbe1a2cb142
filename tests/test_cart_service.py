"""
Tests for the server-side cart.
"""
import pytest

from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.schemas.cart import CartSyncItem
from storefront.services import cart_service
from tests.conftest import auth_headers


class TestAddItem:
    """cart_service.add_item"""

    @pytest.mark.asyncio
    async def test_adding_same_product_merges_lines(self, db, user, make_product):
        product = await make_product(price="4.00", inventory=10)

        await cart_service.add_item(db, user.id, product.id, 2)
        await cart_service.add_item(db, user.id, product.id, 3)

        items = await cart_service.get_cart_items(db, user.id)
        assert len(items) == 1
        assert items[0].quantity == 5

    @pytest.mark.asyncio
    async def test_merged_quantity_bounded_by_inventory(self, db, user, make_product):
        product = await make_product(inventory=4)
        await cart_service.add_item(db, user.id, product.id, 3)

        with pytest.raises(ValidationError) as exc_info:
            await cart_service.add_item(db, user.id, product.id, 2)

        assert exc_info.value.message == "Only 4 items available"

    @pytest.mark.asyncio
    async def test_inactive_product_not_found(self, db, user, make_product):
        product = await make_product(active=False)

        with pytest.raises(NotFoundError):
            await cart_service.add_item(db, user.id, product.id, 1)


class TestSyncCart:
    """cart_service.sync_cart"""

    @pytest.mark.asyncio
    async def test_existing_line_keeps_larger_quantity(self, db, user, make_product):
        product = await make_product(inventory=10)
        await cart_service.add_item(db, user.id, product.id, 4)

        items = await cart_service.sync_cart(db, user.id, [CartSyncItem(product_id=product.id, quantity=2)])
        assert items[0].quantity == 4

        items = await cart_service.sync_cart(db, user.id, [CartSyncItem(product_id=product.id, quantity=7)])
        assert items[0].quantity == 7

    @pytest.mark.asyncio
    async def test_quantity_capped_at_inventory(self, db, user, make_product):
        product = await make_product(inventory=3)

        items = await cart_service.sync_cart(db, user.id, [CartSyncItem(product_id=product.id, quantity=9)])

        assert items[0].quantity == 3

    @pytest.mark.asyncio
    async def test_unavailable_products_skipped(self, db, user, make_product):
        active = await make_product(inventory=5)
        inactive = await make_product(active=False)

        items = await cart_service.sync_cart(db, user.id, [
            CartSyncItem(product_id=active.id, quantity=1),
            CartSyncItem(product_id=inactive.id, quantity=1),
            CartSyncItem(product_id=999999, quantity=1),
        ])

        assert [item.product_id for item in items] == [active.id]

    @pytest.mark.asyncio
    async def test_sold_out_existing_line_dropped(self, db, user, make_product):
        product = await make_product(inventory=2)
        await cart_service.add_item(db, user.id, product.id, 2)
        product.inventory = 0
        await db.flush()

        items = await cart_service.sync_cart(db, user.id, [CartSyncItem(product_id=product.id, quantity=1)])

        assert items == []


class TestValidateCart:
    """cart_service.validate_cart"""

    @pytest.mark.asyncio
    async def test_reports_inactive_and_understocked_lines(self, db, user, make_product):
        gone = await make_product(inventory=5)
        scarce = await make_product(inventory=5)
        await cart_service.add_item(db, user.id, gone.id, 1)
        await cart_service.add_item(db, user.id, scarce.id, 4)
        gone.active = False
        scarce.inventory = 2
        await db.flush()

        report = await cart_service.validate_cart(db, user.id)

        assert report["valid"] is False
        issues = {issue["product_id"]: issue for issue in report["issues"]}
        assert issues[gone.id]["issue"] == "Product is no longer available"
        assert issues[scarce.id]["issue"] == "Only 2 items available"
        assert issues[scarce.id]["available"] == 2

    @pytest.mark.asyncio
    async def test_clean_cart_is_valid(self, db, user, make_product):
        product = await make_product(inventory=5)
        await cart_service.add_item(db, user.id, product.id, 5)

        report = await cart_service.validate_cart(db, user.id)

        assert report == {"valid": True, "issues": []}


class TestCartRoutes:
    """/api/cart endpoints"""

    @pytest.mark.asyncio
    async def test_add_update_remove(self, client, user, make_product):
        product = await make_product(price="2.50", inventory=10)
        headers = auth_headers(user)

        response = await client.post(
            "/api/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers
        )
        assert response.status_code == 201
        body = response.json()
        assert body["item_count"] == 2
        assert body["subtotal"] == 5.0
        item_id = body["items"][0]["id"]

        response = await client.patch(f"/api/cart/items/{item_id}", json={"quantity": 4}, headers=headers)
        assert response.status_code == 200
        assert response.json()["subtotal"] == 10.0

        response = await client.delete(f"/api/cart/items/{item_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["items"] == []

    @pytest.mark.asyncio
    async def test_zero_quantity_is_validation_error(self, client, user, make_product):
        product = await make_product()

        response = await client.post(
            "/api/cart/items", json={"product_id": product.id, "quantity": 0}, headers=auth_headers(user)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_touch_other_users_line(self, client, db, user, make_user, make_product):
        other = await make_user()
        product = await make_product()
        item = await cart_service.add_item(db, other.id, product.id, 1)
        await db.commit()

        response = await client.delete(f"/api/cart/items/{item.id}", headers=auth_headers(user))

        assert response.status_code == 404
