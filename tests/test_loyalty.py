"""
Tests for the loyalty points ledger.
"""
import pytest
from sqlalchemy import select

from storefront.core.exceptions import InsufficientPointsError, ValidationError
from storefront.models import LoyaltyAccount, LoyaltyTier, LoyaltyTransaction, TransactionType
from storefront.services import loyalty_service
from tests.conftest import auth_headers


class TestTierMath:
    """Pure tier and conversion helpers."""

    @pytest.mark.parametrize("total_earned,expected", [
        (0, LoyaltyTier.BRONZE),
        (499, LoyaltyTier.BRONZE),
        (500, LoyaltyTier.SILVER),
        (1499, LoyaltyTier.SILVER),
        (1500, LoyaltyTier.GOLD),
        (2999, LoyaltyTier.GOLD),
        (3000, LoyaltyTier.PLATINUM),
        (100000, LoyaltyTier.PLATINUM),
    ])
    def test_calculate_tier(self, total_earned, expected):
        assert loyalty_service.calculate_tier(total_earned) == expected

    def test_points_to_currency(self):
        assert loyalty_service.points_to_currency(250) == 2.5
        assert loyalty_service.points_to_currency(0) == 0.0

    def test_currency_to_points_rounds_up(self):
        assert loyalty_service.currency_to_points(1.5) == 150
        assert loyalty_service.currency_to_points(0.015) == 2

    @pytest.mark.parametrize("amount,tier,expected", [
        ("100.00", LoyaltyTier.BRONZE, 100),
        ("100.00", LoyaltyTier.SILVER, 125),
        ("99.99", LoyaltyTier.GOLD, 148),
        ("10.50", LoyaltyTier.PLATINUM, 20),
    ])
    def test_purchase_points(self, amount, tier, expected):
        assert loyalty_service.calculate_purchase_points(amount, tier) == expected

    def test_next_tier(self):
        assert loyalty_service.next_tier_info(LoyaltyTier.BRONZE)["tier"] == LoyaltyTier.SILVER
        assert loyalty_service.next_tier_info(LoyaltyTier.GOLD)["min_points"] == 3000
        assert loyalty_service.next_tier_info(LoyaltyTier.PLATINUM) is None


class TestAwardPoints:
    """award_purchase_points"""

    @pytest.mark.asyncio
    async def test_bronze_award_writes_ledger_row(self, db, user):
        points = await loyalty_service.award_purchase_points(db, user.id, "100.00", order_id=None)

        assert points == 100
        account = await loyalty_service.get_or_create_account(db, user.id)
        assert account.points == 100
        assert account.total_earned == 100

        rows = (await db.execute(
            select(LoyaltyTransaction).where(LoyaltyTransaction.account_id == account.id)
        )).scalars().all()
        assert len(rows) == 1
        assert rows[0].type == TransactionType.EARNED
        assert rows[0].points == 100

    @pytest.mark.asyncio
    async def test_multiplier_uses_tier_before_award(self, db, user):
        db.add(LoyaltyAccount(
            user_id=user.id, points=0, total_earned=600, total_redeemed=0, tier=LoyaltyTier.SILVER
        ))
        await db.commit()

        points = await loyalty_service.award_purchase_points(db, user.id, "100.00")

        assert points == 125

    @pytest.mark.asyncio
    async def test_tier_upgrades_from_lifetime_total(self, db, user):
        await loyalty_service.award_purchase_points(db, user.id, "499.00")
        account = await loyalty_service.get_or_create_account(db, user.id)
        assert account.tier == LoyaltyTier.BRONZE

        await loyalty_service.award_purchase_points(db, user.id, "1.00")
        account = await loyalty_service.get_or_create_account(db, user.id)
        assert account.total_earned == 500
        assert account.tier == LoyaltyTier.SILVER

    @pytest.mark.asyncio
    async def test_tier_never_downgrades(self, db, user):
        db.add(LoyaltyAccount(
            user_id=user.id, points=0, total_earned=10, total_redeemed=0, tier=LoyaltyTier.GOLD
        ))
        await db.commit()

        await loyalty_service.award_purchase_points(db, user.id, "1.00")

        account = await loyalty_service.get_or_create_account(db, user.id)
        assert account.tier == LoyaltyTier.GOLD


class TestRedeemPoints:
    """redeem_points"""

    @pytest.mark.asyncio
    async def test_redeem_debits_balance(self, db, user):
        await loyalty_service.award_purchase_points(db, user.id, "300.00")

        account = await loyalty_service.redeem_points(db, user.id, 120, "Discount")

        assert account.points == 180
        assert account.total_redeemed == 120
        assert account.total_earned == 300

        rows = (await db.execute(
            select(LoyaltyTransaction)
            .where(LoyaltyTransaction.type == TransactionType.REDEEMED)
        )).scalars().all()
        assert [row.points for row in rows] == [-120]

    @pytest.mark.asyncio
    async def test_over_redeem_rejected_and_balance_unchanged(self, db, user):
        await loyalty_service.award_purchase_points(db, user.id, "50.00")

        with pytest.raises(InsufficientPointsError) as exc_info:
            await loyalty_service.redeem_points(db, user.id, 51)

        assert exc_info.value.details == {"requested": 51, "available": 50}
        account = await loyalty_service.get_or_create_account(db, user.id)
        assert account.points == 50
        assert account.total_redeemed == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("points", [0, -5])
    async def test_non_positive_points_rejected(self, db, user, points):
        with pytest.raises(ValidationError):
            await loyalty_service.redeem_points(db, user.id, points)


class TestLoyaltyRoutes:
    """GET /api/loyalty and POST /api/loyalty/redeem"""

    @pytest.mark.asyncio
    async def test_first_access_creates_bronze_account(self, client, user):
        response = await client.get("/api/loyalty", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["points"] == 0
        assert body["tier"] == "BRONZE"
        assert body["next_tier"]["min_points"] == 500
        assert body["transactions"] == []

    @pytest.mark.asyncio
    async def test_redeem_endpoint(self, client, db, user):
        await loyalty_service.award_purchase_points(db, user.id, "250.00")

        response = await client.post(
            "/api/loyalty/redeem",
            json={"points": 100},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["points"] == 150
        assert body["points_value"] == 1.5
        assert [t["type"] for t in body["transactions"]] == ["REDEEMED", "EARNED"]

    @pytest.mark.asyncio
    async def test_redeem_too_many_is_client_error(self, client, user):
        response = await client.post(
            "/api/loyalty/redeem",
            json={"points": 10},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_POINTS"
