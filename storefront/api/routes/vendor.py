"""
Vendor routes - seller applications and dashboard
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.models import User
from storefront.schemas.vendor import VendorApply, VendorApplicationResponse, VendorResponse, VendorStats
from storefront.services.vendor_service import vendor_service
from storefront.api.deps import get_current_user

router = APIRouter()


@router.post("/register", response_model=VendorApplicationResponse, status_code=status.HTTP_201_CREATED)
async def register_vendor(
    data: VendorApply,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Submit a vendor application for the signed-in user."""
    vendor = await vendor_service.apply(db, user, data)
    await db.commit()
    await db.refresh(vendor)

    return VendorApplicationResponse(
        message="Application submitted successfully",
        vendor=VendorResponse.model_validate(vendor),
    )


@router.get("/stats", response_model=VendorStats)
async def get_vendor_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vendor = await vendor_service.get_for_user(db, user.id)
    return await vendor_service.get_stats(db, vendor)
