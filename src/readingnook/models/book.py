"""
ORM model for the Book entity in the ReadingNook database.
Books are created by catalog reconciliation and are never deleted by the application.
"""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from readingnook.db.session import Base

class Book(Base):
    """
    Represents a book known to the local store.

    Attributes:
        id (int): Primary key, stable once assigned.
        title (str): Book title.
        author (str): Author line as returned by the catalog.
        publisher (str): Publisher name.
        category (str): Catalog category path (used by the genre statistics).
        isbn (str): Natural key, unique when present.
        cover (str): Large cover image URL.
        description (str): Blurb or synopsis.
    """
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), index=True, nullable=False)
    author = Column(String(255), index=True, nullable=True)
    publisher = Column(String(255), nullable=True)
    category = Column(String(255), nullable=True)
    isbn = Column(String(20), unique=True, index=True, nullable=True)
    cover = Column(String(512), nullable=True)
    description = Column(Text, nullable=True)

    reviews = relationship("Review", back_populates="book")
    quotes = relationship("Quote", back_populates="book")
    library_entries = relationship("LibraryEntry", back_populates="book")

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title[:30]}...', isbn='{self.isbn}')>"
