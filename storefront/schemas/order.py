"""
Order schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from storefront.models.order import OrderStatus
from storefront.schemas.address import AddressResponse


class OrderItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    price: float
    quantity: int

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    status: OrderStatus
    subtotal: float
    shipping: float
    tax: float
    total: float
    currency_code: str
    shipping_address_id: Optional[int] = None
    shipping_address: Optional[AddressResponse] = None
    stripe_session_id: Optional[str] = None
    items: List[OrderItemResponse]
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderList(BaseModel):
    orders: List[OrderResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class AdminOrderList(BaseModel):
    orders: List[OrderResponse]
    total: int
    limit: int
    offset: int


class OrderStatusUpdate(BaseModel):
    # Plain string so unknown values reach the service and get a 400
    status: str
