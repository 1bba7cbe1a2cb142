"""
Tests for shipping address routes and the single-default rule.
"""
import pytest
from sqlalchemy import select

from storefront.models import Address
from tests.conftest import auth_headers

ADDRESS = {
    "street": "742 Evergreen Terrace",
    "city": "Springfield",
    "state": "OR",
    "zip_code": "97403",
    "country": "US",
}


async def defaults_for(session_factory, user_id: int):
    async with session_factory() as session:
        result = await session.execute(
            select(Address.id).where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
        )
        return list(result.scalars().all())


class TestAddressRoutes:
    """/api/addresses"""

    @pytest.mark.asyncio
    async def test_first_address_becomes_default(self, client, user):
        response = await client.post("/api/addresses", json=ADDRESS, headers=auth_headers(user))

        assert response.status_code == 201
        assert response.json()["is_default"] is True

    @pytest.mark.asyncio
    async def test_second_address_not_default_unless_asked(self, client, session_factory, user):
        headers = auth_headers(user)
        first = (await client.post("/api/addresses", json=ADDRESS, headers=headers)).json()
        second = (await client.post(
            "/api/addresses", json={**ADDRESS, "street": "1 Other Rd"}, headers=headers
        )).json()

        assert second["is_default"] is False
        assert await defaults_for(session_factory, user.id) == [first["id"]]

    @pytest.mark.asyncio
    async def test_at_most_one_default(self, client, session_factory, user):
        headers = auth_headers(user)
        await client.post("/api/addresses", json=ADDRESS, headers=headers)
        second = (await client.post(
            "/api/addresses", json={**ADDRESS, "is_default": True}, headers=headers
        )).json()
        assert await defaults_for(session_factory, user.id) == [second["id"]]

        third = (await client.post(
            "/api/addresses", json={**ADDRESS, "street": "3 Third St"}, headers=headers
        )).json()
        response = await client.put(f"/api/addresses/{third['id']}/set-default", headers=headers)

        assert response.status_code == 200
        assert await defaults_for(session_factory, user.id) == [third["id"]]

    @pytest.mark.asyncio
    async def test_update_fields(self, client, user, make_address):
        address = await make_address(user)

        response = await client.put(
            f"/api/addresses/{address.id}", json={"city": "Shelbyville"}, headers=auth_headers(user)
        )

        assert response.status_code == 200
        assert response.json()["city"] == "Shelbyville"
        assert response.json()["street"] == address.street

    @pytest.mark.asyncio
    async def test_other_users_address_not_found(self, client, user, make_user, make_address):
        other = await make_user()
        address = await make_address(other)

        response = await client.get(f"/api/addresses/{address.id}", headers=auth_headers(user))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_address_used_by_order_rejected(
        self, client, user, make_address, make_product, make_order
    ):
        address = await make_address(user)
        product = await make_product()
        await make_order(user, [(product, 1)], address=address)

        response = await client.delete(f"/api/addresses/{address.id}", headers=auth_headers(user))

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete address that is used in orders"

    @pytest.mark.asyncio
    async def test_deleting_default_promotes_oldest(self, client, session_factory, user, make_address):
        default = await make_address(user, is_default=True, street="1 First St")
        oldest = await make_address(user, is_default=False, street="2 Second St")
        await make_address(user, is_default=False, street="3 Third St")

        response = await client.delete(f"/api/addresses/{default.id}", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json() == {"message": "Address deleted successfully"}
        assert await defaults_for(session_factory, user.id) == [oldest.id]
