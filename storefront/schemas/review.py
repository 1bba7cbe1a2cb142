"""
Review schemas
"""
from datetime import datetime
from typing import List
from pydantic import BaseModel, Field, field_validator


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., max_length=500)

    @field_validator("comment")
    @classmethod
    def comment_long_enough(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Comment must be at least 10 characters")
        return v


class ReviewAuthor(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ReviewResponse(BaseModel):
    id: int
    product_id: int
    rating: int
    comment: str
    created_at: datetime
    user: ReviewAuthor

    class Config:
        from_attributes = True


class ProductReviews(BaseModel):
    reviews: List[ReviewResponse]
    average_rating: float
    total_reviews: int
