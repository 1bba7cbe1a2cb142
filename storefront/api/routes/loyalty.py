"""
Loyalty program routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.models.loyalty import LoyaltyAccount
from storefront.models.user import User
from storefront.schemas.loyalty import LoyaltyAccountResponse, RedeemRequest
from storefront.services import loyalty_service
from storefront.api.deps import get_current_user

router = APIRouter()


async def _account_response(db: AsyncSession, account: LoyaltyAccount) -> LoyaltyAccountResponse:
    transactions = await loyalty_service.recent_transactions(db, account.id, limit=20)
    return LoyaltyAccountResponse(
        id=account.id,
        points=account.points,
        total_earned=account.total_earned,
        total_redeemed=account.total_redeemed,
        tier=account.tier,
        tier_info=loyalty_service.tier_info(account.tier),
        next_tier=loyalty_service.next_tier_info(account.tier),
        points_value=loyalty_service.points_to_currency(account.points),
        transactions=transactions,
    )


@router.get("", response_model=LoyaltyAccountResponse)
async def get_loyalty_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current balance, tier and the 20 most recent transactions."""
    account = await loyalty_service.get_or_create_account(db, current_user.id)
    await db.commit()
    return await _account_response(db, account)


@router.post("/redeem", response_model=LoyaltyAccountResponse)
async def redeem(
    payload: RedeemRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    account = await loyalty_service.redeem_points(
        db,
        current_user.id,
        payload.points,
        payload.description,
    )
    return await _account_response(db, account)
