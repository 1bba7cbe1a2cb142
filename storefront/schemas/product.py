"""
Product schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    compare_price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    slug: Optional[str] = None
    inventory: int = 0
    images: List[str] = []
    category_id: Optional[int] = None
    vendor_id: Optional[int] = None
    featured: bool = False
    active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    compare_price: Optional[float] = Field(None, ge=0)
    inventory: Optional[int] = None
    images: Optional[List[str]] = None
    category_id: Optional[int] = None
    vendor_id: Optional[int] = None
    featured: Optional[bool] = None
    active: Optional[bool] = None


class ProductResponse(BaseModel):
    id: int
    name: str
    slug: str
    sku: str
    description: Optional[str] = None
    price: float
    compare_price: Optional[float] = None
    inventory: int
    images: List[str] = []
    category_id: Optional[int] = None
    vendor_id: Optional[int] = None
    featured: bool
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductList(BaseModel):
    items: List[ProductResponse]
    total: int


class RelatedProducts(BaseModel):
    related_products: List[ProductResponse]
