"""
Loyalty schemas
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from storefront.models.loyalty import LoyaltyTier, TransactionType


class LoyaltyTransactionResponse(BaseModel):
    id: int
    type: TransactionType
    points: int
    description: str
    order_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TierInfo(BaseModel):
    tier: LoyaltyTier
    name: str
    min_points: int
    multiplier: float
    benefits: List[str]


class LoyaltyAccountResponse(BaseModel):
    id: int
    points: int
    total_earned: int
    total_redeemed: int
    tier: LoyaltyTier
    tier_info: TierInfo
    next_tier: Optional[TierInfo] = None
    points_value: float
    transactions: List[LoyaltyTransactionResponse] = []


class RedeemRequest(BaseModel):
    points: int
    description: str = "Points redemption"
