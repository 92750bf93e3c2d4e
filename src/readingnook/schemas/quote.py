"""
Pydantic schemas for quotes and quote comments.
"""

import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class QuoteCreate(BaseModel):
    book_id: int = Field(..., alias="bookId", gt=0)
    content: str
    page: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("content must not be empty")
        return value


class QuoteCommentCreate(BaseModel):
    # Older clients send quote_id / text.
    quote_id: int = Field(..., validation_alias=AliasChoices("quoteId", "quote_id"), gt=0)
    content: str = Field(..., validation_alias=AliasChoices("content", "text"))

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("content must not be empty")
        return value


class QuoteSchema(BaseModel):
    id: int
    user_id: str
    book_id: int
    content: str
    page: Optional[int] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteCommentSchema(BaseModel):
    id: int
    quote_id: int
    user_id: str
    content: str
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
