"""
CRUD operations for the Book model.
Includes functions to search books locally, fetch them by id or ISBN, and map
ISBNs to local ids. Used by the reconciliation service and the HTTP layer.
"""

from sqlalchemy.orm import Session
from sqlalchemy import select, or_
from typing import Dict, Iterable, List, Optional

from ..models.book import Book

def search_books(db: Session, query: str, limit: int = 50) -> List[Book]:
    """
    Searches local books whose title, author, publisher or category contains `query`.

    Args:
        db (Session): SQLAlchemy session.
        query (str): Case-insensitive substring.
        limit (int): Maximum number of rows.

    Returns:
        List[Book]: Matching books ordered by id.
    """
    pattern = f"%{query}%"
    stmt = (
        select(Book)
        .where(
            or_(
                Book.title.ilike(pattern),
                Book.author.ilike(pattern),
                Book.publisher.ilike(pattern),
                Book.category.ilike(pattern),
            )
        )
        .order_by(Book.id)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())

def get_book_by_id(db: Session, book_id: int) -> Optional[Book]:
    """
    Fetches a book by primary key.

    Args:
        db (Session): SQLAlchemy session.
        book_id (int): Book id.

    Returns:
        Optional[Book]: The book, or None if it does not exist.
    """
    return db.get(Book, book_id)

def get_book_by_isbn(db: Session, isbn: str) -> Optional[Book]:
    """
    Fetches a book by ISBN.

    Args:
        db (Session): SQLAlchemy session.
        isbn (str): ISBN to look up.

    Returns:
        Optional[Book]: The book, or None if it does not exist.
    """
    stmt = select(Book).where(Book.isbn == isbn)
    return db.execute(stmt).scalars().first()

def get_ids_by_isbn(db: Session, isbns: Iterable[str]) -> Dict[str, int]:
    """Maps every ISBN in `isbns` that exists locally to its book id."""
    isbns = sorted({isbn for isbn in isbns if isbn})
    if not isbns:
        return {}
    rows = db.execute(select(Book.id, Book.isbn).where(Book.isbn.in_(isbns))).all()
    return {row.isbn: row.id for row in rows}

def get_books_by_ids(db: Session, book_ids: Iterable[int]) -> Dict[int, Book]:
    ids = {book_id for book_id in book_ids if book_id is not None}
    if not ids:
        return {}
    return {book.id: book for book in db.execute(select(Book).where(Book.id.in_(ids))).scalars()}
