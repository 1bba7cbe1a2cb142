"""
Checkout schemas
"""
import json
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class CheckoutItem(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class CheckoutRequest(BaseModel):
    cart_items: List[CheckoutItem] = []
    shipping_address_id: int


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: Optional[str] = None


class CheckoutConfigResponse(BaseModel):
    publishable_key: str
    currency: str


class SessionLineItem(BaseModel):
    id: int
    quantity: int = Field(..., gt=0)
    price: Decimal


class SessionMetadata(BaseModel):
    """Metadata written on the Checkout Session and read back by the webhook."""
    user_id: int
    shipping_address_id: int
    cart_items: List[SessionLineItem] = Field(..., min_length=1)
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    @field_validator("cart_items", mode="before")
    @classmethod
    def parse_cart_items(cls, v):
        # Stripe metadata values are strings
        if isinstance(v, str):
            return json.loads(v)
        return v
