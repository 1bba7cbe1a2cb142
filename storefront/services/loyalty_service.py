"""
Loyalty points ledger

Accounts hold a running balance (points), lifetime totals and a tier derived
from total_earned. Every balance change appends a LoyaltyTransaction row in
the same transaction. Balance counters are updated with SQL-side increments
so concurrent awards and redemptions do not lose writes.
"""
import logging
import math
from decimal import Decimal
from typing import Optional, Dict, Any, List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import ValidationError, InsufficientPointsError
from storefront.models.loyalty import (
    LoyaltyAccount,
    LoyaltyTransaction,
    LoyaltyTier,
    TransactionType,
)

logger = logging.getLogger(__name__)


LOYALTY_TIERS: Dict[LoyaltyTier, Dict[str, Any]] = {
    LoyaltyTier.BRONZE: {
        "name": "Bronze",
        "min_points": 0,
        "multiplier": 1,
        "benefits": [
            "1 point per $1 spent",
            "Birthday bonus: 50 points",
            "Exclusive member-only sales",
        ],
    },
    LoyaltyTier.SILVER: {
        "name": "Silver",
        "min_points": 500,
        "multiplier": 1.25,
        "benefits": [
            "1.25 points per $1 spent",
            "Free shipping on orders over $50",
            "Birthday bonus: 100 points",
            "Early access to sales",
        ],
    },
    LoyaltyTier.GOLD: {
        "name": "Gold",
        "min_points": 1500,
        "multiplier": 1.5,
        "benefits": [
            "1.5 points per $1 spent",
            "Free shipping on all orders",
            "Birthday bonus: 200 points",
            "Priority customer support",
            "Exclusive products access",
        ],
    },
    LoyaltyTier.PLATINUM: {
        "name": "Platinum",
        "min_points": 3000,
        "multiplier": 2,
        "benefits": [
            "2 points per $1 spent",
            "Free express shipping",
            "Birthday bonus: 500 points",
            "VIP customer support",
            "Exclusive platinum-only products",
            "Special gifts and surprises",
        ],
    },
}

# Highest threshold first
_TIERS_DESCENDING = sorted(
    LOYALTY_TIERS.items(), key=lambda item: item[1]["min_points"], reverse=True
)
_TIER_RANK = {tier: rank for rank, (tier, _) in enumerate(reversed(_TIERS_DESCENDING))}


def calculate_tier(total_earned: int) -> LoyaltyTier:
    """Highest tier whose threshold is <= total_earned."""
    for tier, info in _TIERS_DESCENDING:
        if total_earned >= info["min_points"]:
            return tier
    return LoyaltyTier.BRONZE


def tier_info(tier: LoyaltyTier) -> Dict[str, Any]:
    return {"tier": tier, **LOYALTY_TIERS[tier]}


def next_tier_info(tier: LoyaltyTier) -> Optional[Dict[str, Any]]:
    rank = _TIER_RANK[tier]
    for candidate, candidate_rank in _TIER_RANK.items():
        if candidate_rank == rank + 1:
            return tier_info(candidate)
    return None


def points_to_currency(points: int, rate: Optional[float] = None) -> float:
    """Monetary value of a point balance."""
    if rate is None:
        rate = settings.LOYALTY_POINT_VALUE
    return float(Decimal(str(points)) * Decimal(str(rate)))


def currency_to_points(amount: float, rate: Optional[float] = None) -> int:
    """Points needed to cover an amount, rounded up."""
    if rate is None:
        rate = settings.LOYALTY_POINT_VALUE
    return math.ceil(Decimal(str(amount)) / Decimal(str(rate)))


def calculate_purchase_points(order_amount, tier: LoyaltyTier) -> int:
    """floor(floor(amount) * tier multiplier)"""
    whole_dollars = math.floor(Decimal(str(order_amount)))
    multiplier = Decimal(str(LOYALTY_TIERS[tier]["multiplier"]))
    return math.floor(whole_dollars * multiplier)


async def get_or_create_account(db: AsyncSession, user_id: int) -> LoyaltyAccount:
    """Return the user's account, creating an empty BRONZE one on first access."""
    result = await db.execute(
        select(LoyaltyAccount).where(LoyaltyAccount.user_id == user_id)
    )
    account = result.scalar_one_or_none()
    if account:
        return account

    account = LoyaltyAccount(
        user_id=user_id,
        points=0,
        total_earned=0,
        total_redeemed=0,
        tier=LoyaltyTier.BRONZE,
    )
    db.add(account)
    await db.flush()
    return account


async def _reload(db: AsyncSession, account_id: int) -> LoyaltyAccount:
    result = await db.execute(
        select(LoyaltyAccount)
        .where(LoyaltyAccount.id == account_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def award_purchase_points(
    db: AsyncSession,
    user_id: int,
    order_amount,
    order_id: Optional[int] = None,
) -> Optional[int]:
    """
    Credit points for a completed purchase.

    Points are computed with the multiplier of the tier the account holds
    before this award. The tier is then re-evaluated from the new lifetime
    total and only ever moves up.

    Commits on success. Never raises: failures are logged, rolled back and
    reported as None so a loyalty outage cannot fail order processing.

    Returns:
        Points awarded, or None on failure
    """
    try:
        account = await get_or_create_account(db, user_id)
        points = calculate_purchase_points(order_amount, account.tier)

        await db.execute(
            update(LoyaltyAccount)
            .where(LoyaltyAccount.id == account.id)
            .values(
                points=LoyaltyAccount.points + points,
                total_earned=LoyaltyAccount.total_earned + points,
            )
        )
        db.add(LoyaltyTransaction(
            user_id=user_id,
            account_id=account.id,
            type=TransactionType.EARNED,
            points=points,
            description=f"Purchase reward for order #{order_id}" if order_id else "Purchase reward",
            order_id=order_id,
        ))

        account = await _reload(db, account.id)
        new_tier = calculate_tier(account.total_earned)
        if _TIER_RANK[new_tier] > _TIER_RANK[account.tier]:
            logger.info(f"Loyalty tier upgrade user={user_id}: {account.tier.value} -> {new_tier.value}")
            account.tier = new_tier

        await db.commit()
        logger.info(f"Awarded {points} points to user {user_id} for order {order_id}")
        return points
    except Exception as e:
        logger.error(f"Failed to award loyalty points user={user_id} order={order_id}: {e}", exc_info=True)
        await db.rollback()
        return None


async def redeem_points(
    db: AsyncSession,
    user_id: int,
    points: int,
    description: str = "Points redemption",
) -> LoyaltyAccount:
    """
    Spend points from the balance.

    Raises:
        ValidationError: points is not positive
        InsufficientPointsError: points exceeds the current balance
    """
    if points is None or points <= 0:
        raise ValidationError("Points must be greater than 0", details={"points": points})

    account = await get_or_create_account(db, user_id)

    # Conditional decrement: a concurrent redemption cannot overdraw
    result = await db.execute(
        update(LoyaltyAccount)
        .where(LoyaltyAccount.id == account.id, LoyaltyAccount.points >= points)
        .values(
            points=LoyaltyAccount.points - points,
            total_redeemed=LoyaltyAccount.total_redeemed + points,
        )
    )
    if result.rowcount == 0:
        account = await _reload(db, account.id)
        raise InsufficientPointsError(requested=points, available=account.points)

    db.add(LoyaltyTransaction(
        user_id=user_id,
        account_id=account.id,
        type=TransactionType.REDEEMED,
        points=-points,
        description=description,
    ))
    await db.commit()

    logger.info(f"User {user_id} redeemed {points} points")
    return await _reload(db, account.id)


async def recent_transactions(
    db: AsyncSession,
    account_id: int,
    limit: int = 20,
) -> List[LoyaltyTransaction]:
    result = await db.execute(
        select(LoyaltyTransaction)
        .where(LoyaltyTransaction.account_id == account_id)
        .order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
