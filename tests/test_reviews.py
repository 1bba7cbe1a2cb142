"""
Tests for product reviews.
"""
import pytest

from tests.conftest import auth_headers


async def post_review(client, user, product_id, rating=5, comment="Exactly as described, would buy again"):
    return await client.post(
        f"/api/reviews/{product_id}",
        json={"rating": rating, "comment": comment},
        headers=auth_headers(user),
    )


class TestReviews:
    """/api/reviews/{product_id}"""

    @pytest.mark.asyncio
    async def test_empty_product(self, client, make_product):
        product = await make_product()

        response = await client.get(f"/api/reviews/{product.id}")

        assert response.status_code == 200
        assert response.json() == {"reviews": [], "average_rating": 0, "total_reviews": 0}

    @pytest.mark.asyncio
    async def test_newest_first_with_average(self, client, user, make_user, make_product):
        product = await make_product()
        second_user = await make_user(name="Second Reviewer")
        third_user = await make_user(name="Third Reviewer")

        await post_review(client, user, product.id, rating=5)
        await post_review(client, second_user, product.id, rating=4)
        await post_review(client, third_user, product.id, rating=4)

        response = await client.get(f"/api/reviews/{product.id}")

        body = response.json()
        assert body["total_reviews"] == 3
        assert body["average_rating"] == 4.33
        assert [r["user"]["name"] for r in body["reviews"]] == [
            "Third Reviewer", "Second Reviewer", "Alice Shopper"
        ]
        assert "email" not in body["reviews"][0]["user"]

    @pytest.mark.asyncio
    async def test_create_review(self, client, user, make_product):
        product = await make_product()

        response = await post_review(client, user, product.id, rating=3, comment="  Decent value for money  ")

        assert response.status_code == 201
        body = response.json()
        assert body["rating"] == 3
        assert body["comment"] == "Decent value for money"
        assert body["user"]["id"] == user.id

    @pytest.mark.asyncio
    async def test_one_review_per_product(self, client, user, make_product):
        product = await make_product()
        await post_review(client, user, product.id)

        response = await post_review(client, user, product.id, rating=1)

        assert response.status_code == 400
        assert response.json()["error"] == "ALREADY_REVIEWED"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating,comment", [(0, "Long enough comment"), (6, "Long enough comment"), (4, "short")])
    async def test_invalid_review_rejected(self, client, user, make_product, rating, comment):
        product = await make_product()

        response = await post_review(client, user, product.id, rating=rating, comment=comment)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_inactive_product_cannot_be_reviewed(self, client, user, make_product):
        product = await make_product(active=False)

        response = await post_review(client, user, product.id)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_requires_login(self, client, make_product):
        product = await make_product()

        response = await client.post(
            f"/api/reviews/{product.id}", json={"rating": 5, "comment": "Great stuff overall"}
        )

        assert response.status_code == 401
