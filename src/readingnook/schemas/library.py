"""
Pydantic schemas for library entries (user x book).
"""

import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional

from .book import BookSummary

ReadingStatus = Literal["want", "reading", "finished"]


class LibraryEntryCreate(BaseModel):
    book_id: int = Field(..., alias="bookId", gt=0)
    status: Optional[ReadingStatus] = None
    started_at: Optional[datetime.date] = Field(default=None, alias="startedAt")
    finished_at: Optional[datetime.date] = Field(default=None, alias="finishedAt")
    emotion_tag: Optional[str] = Field(default=None, alias="emotionTag")

    model_config = ConfigDict(populate_by_name=True)


class LibraryEntryUpdate(BaseModel):
    """
    Status change request. `emotion_tag` is only applied when it was sent;
    check `model_fields_set` to tell "not sent" from an explicit empty tag.
    """
    book_id: int = Field(..., alias="bookId", gt=0)
    status: ReadingStatus
    emotion_tag: Optional[str] = Field(default=None, alias="emotionTag")

    model_config = ConfigDict(populate_by_name=True)


class LibraryEntrySchema(BaseModel):
    id: int
    book_id: int
    status: str
    started_at: Optional[datetime.date] = None
    finished_at: Optional[datetime.date] = None
    emotion_tag: Optional[str] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class LibraryItemSchema(LibraryEntrySchema):
    books: Optional[BookSummary] = Field(default=None, validation_alias="book")
