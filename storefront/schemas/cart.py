"""
Cart schemas
"""
from typing import List
from pydantic import BaseModel, Field

from storefront.schemas.product import ProductResponse


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(1, gt=0)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0)


class CartItemResponse(BaseModel):
    id: int
    product: ProductResponse
    quantity: int
    price: float

    class Config:
        from_attributes = True


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    subtotal: float
    item_count: int


class CartSyncItem(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=0)


class CartSyncRequest(BaseModel):
    items: List[CartSyncItem] = []


class CartValidationIssue(BaseModel):
    item_id: int
    product_id: int
    issue: str
    available: int


class CartValidationResponse(BaseModel):
    valid: bool
    issues: List[CartValidationIssue]
