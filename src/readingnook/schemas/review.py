"""
Pydantic schemas for reviews and review likes.
Defines the request models (validation) and the output models (serialization).
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
import datetime
from typing import Optional


class ReviewBase(BaseModel):
    """
    Base schema for a review.

    Attributes:
        rating (int): Rating between 1 and 5.
        content (str): Review text, trimmed and non-empty.
    """
    rating: int = Field(..., ge=1, le=5)
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("content must not be empty")
        return value


class ReviewCreate(ReviewBase):
    book_id: int = Field(..., alias="bookId", gt=0)

    model_config = ConfigDict(populate_by_name=True)


class ReviewUpdate(ReviewBase):
    review_id: int = Field(..., alias="reviewId", gt=0)

    model_config = ConfigDict(populate_by_name=True)


class ReviewTarget(BaseModel):
    """Body of DELETE /reviews and POST /review-likes."""
    review_id: int = Field(..., alias="reviewId", gt=0)

    model_config = ConfigDict(populate_by_name=True)


class ReviewSchema(ReviewBase):
    """
    Output schema for a review.

    Attributes:
        id (int): Review id.
        user_id (str): Author id.
        book_id (int): Reviewed book id.
        likes_count (int): Cached like count.
        created_at (datetime.datetime): Creation time.
        updated_at (Optional[datetime.datetime]): Last edit time.
    """
    id: int
    user_id: str
    book_id: int
    likes_count: int = 0
    created_at: datetime.datetime
    updated_at: Optional[datetime.datetime] = None

    model_config = ConfigDict(from_attributes=True)
