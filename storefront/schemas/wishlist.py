"""
Wishlist schemas
"""
from datetime import datetime
from pydantic import BaseModel

from storefront.schemas.product import ProductResponse


class WishlistAdd(BaseModel):
    product_id: int


class WishlistItemResponse(BaseModel):
    id: int
    product_id: int
    product: ProductResponse
    created_at: datetime

    class Config:
        from_attributes = True
