"""
User profile routes
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.exceptions import ValidationError
from storefront.core.security import get_password_hash, verify_password
from storefront.models import User
from storefront.schemas.user import ProfileUpdate, UserResponse
from storefront.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    """Get current user profile"""
    return user


@router.patch("/profile", response_model=UserResponse)
async def update_profile(
    update_data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name, phone and optionally the password."""
    if update_data.new_password is not None:
        if not update_data.current_password:
            raise ValidationError(
                "Current password is required to set a new password",
                details={"field": "current_password"},
            )
        if not verify_password(update_data.current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect", code="INVALID_PASSWORD")
        user.hashed_password = get_password_hash(update_data.new_password)
        logger.info(f"User {user.id} changed password")

    if update_data.name is not None:
        user.name = update_data.name
    if update_data.phone is not None:
        user.phone = update_data.phone or None

    await db.commit()
    await db.refresh(user)

    return user
