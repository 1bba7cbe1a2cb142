"""
Tests for wishlist routes.
"""
import pytest

from tests.conftest import auth_headers


class TestWishlist:
    """/api/wishlist"""

    @pytest.mark.asyncio
    async def test_add_list_remove(self, client, user, make_product):
        product = await make_product(name="Poster")
        headers = auth_headers(user)

        response = await client.post("/api/wishlist", json={"product_id": product.id}, headers=headers)
        assert response.status_code == 201
        assert response.json()["product"]["name"] == "Poster"

        response = await client.get("/api/wishlist", headers=headers)
        assert [item["product_id"] for item in response.json()] == [product.id]

        response = await client.delete(f"/api/wishlist/{product.id}", headers=headers)
        assert response.status_code == 200
        assert (await client.get("/api/wishlist", headers=headers)).json() == []

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, client, user, make_product):
        product = await make_product()
        headers = auth_headers(user)
        await client.post("/api/wishlist", json={"product_id": product.id}, headers=headers)

        response = await client.post("/api/wishlist", json={"product_id": product.id}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "ALREADY_IN_WISHLIST"

    @pytest.mark.asyncio
    async def test_unknown_product(self, client, user):
        response = await client.post("/api/wishlist", json={"product_id": 5555}, headers=auth_headers(user))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_remove_missing_item(self, client, user, make_product):
        product = await make_product()

        response = await client.delete(f"/api/wishlist/{product.id}", headers=auth_headers(user))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_lists_are_per_user(self, client, user, make_user, make_product):
        other = await make_user()
        product = await make_product()
        await client.post("/api/wishlist", json={"product_id": product.id}, headers=auth_headers(other))

        response = await client.get("/api/wishlist", headers=auth_headers(user))

        assert response.json() == []
