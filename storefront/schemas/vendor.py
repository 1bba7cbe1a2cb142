"""
Vendor schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from storefront.models.order import OrderStatus
from storefront.models.vendor import VendorStatus


class VendorApply(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=200)
    business_email: EmailStr
    business_phone: Optional[str] = Field(None, max_length=30)
    description: str = Field(..., min_length=1)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    tax_id: Optional[str] = Field(None, max_length=50)


class VendorResponse(BaseModel):
    id: int
    user_id: int
    business_name: str
    business_email: str
    business_phone: Optional[str] = None
    description: str
    address: Optional[str] = None
    city: Optional[str] = None
    country: str
    tax_id: Optional[str] = None
    status: VendorStatus
    commission: float
    created_at: datetime

    class Config:
        from_attributes = True


class VendorApplicationResponse(BaseModel):
    message: str
    vendor: VendorResponse


class VendorRecentOrder(BaseModel):
    id: int
    order_number: str
    status: OrderStatus
    total: float
    created_at: datetime


class VendorStats(BaseModel):
    business_name: str
    status: VendorStatus
    total_sales: float
    revenue: float
    commission: float
    net_earnings: float
    total_products: int
    pending_orders: int
    recent_orders: List[VendorRecentOrder]
