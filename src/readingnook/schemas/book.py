"""
Pydantic schemas for books.

CatalogBook is the normalized shape of an external catalog item; BookSchema is a
row of the local store.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CatalogBook(BaseModel):
    """
    Book record as normalized from the external catalog.

    Attributes:
        id (Optional[int]): Local id once reconciled; None when the item has no usable ISBN.
        title (str): Title.
        isbn (Optional[str]): 13-digit ISBN when available, otherwise the legacy ISBN.
        rank (Optional[int]): Bestseller rank (bestseller lists only).
        pub_date (Optional[str]): Publication date (new-arrival lists only).
    """
    id: Optional[int] = None
    title: str
    author: Optional[str] = None
    publisher: Optional[str] = None
    category: Optional[str] = None
    isbn: Optional[str] = None
    cover: Optional[str] = None
    description: Optional[str] = None
    rank: Optional[int] = None
    pub_date: Optional[str] = Field(default=None, serialization_alias="pubDate")

    def store_fields(self) -> dict:
        """Columns of the books table carried by this record."""
        return {
            "title": self.title,
            "author": self.author,
            "publisher": self.publisher,
            "category": self.category,
            "isbn": self.isbn,
            "cover": self.cover,
            "description": self.description,
        }


class BookSchema(BaseModel):
    id: int
    title: str
    author: Optional[str] = None
    publisher: Optional[str] = None
    category: Optional[str] = None
    isbn: Optional[str] = None
    cover: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookSummary(BaseModel):
    """Subset of book fields embedded in feeds and library listings."""
    id: int
    title: str
    author: Optional[str] = None
    publisher: Optional[str] = None
    category: Optional[str] = None
    cover: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
