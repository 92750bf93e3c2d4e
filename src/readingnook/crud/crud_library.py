"""
CRUD operations for library entries (user_books).
A library entry is unique per (user, book); status changes carry the date side
effects defined in core.security.apply_status_transition.
"""

import datetime
import logging
from types import SimpleNamespace
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.errors import NotFound, StoreError
from ..core.security import ActorContext, StatusChange, apply_status_transition, require_actor
from ..db.upsert import upsert
from ..models.book import Book
from ..models.library import LibraryEntry
from ..schemas.library import LibraryEntryCreate, LibraryEntryUpdate

logger = logging.getLogger(__name__)

_MUTABLE_COLUMNS = ("status", "started_at", "finished_at", "emotion_tag")


def get_entry(db: Session, user_id: str, book_id: int) -> Optional[LibraryEntry]:
    """
    Fetches the caller's entry for one book.

    Args:
        db (Session): SQLAlchemy session.
        user_id (str): Owner id.
        book_id (int): Book id.

    Returns:
        Optional[LibraryEntry]: The entry, or None if the book is not in the library.
    """
    stmt = select(LibraryEntry).where(LibraryEntry.user_id == user_id, LibraryEntry.book_id == book_id)
    return db.execute(stmt).scalars().first()


def list_library(db: Session, user_id: str) -> List[LibraryEntry]:
    """Every entry of the user with its book loaded, newest first."""
    stmt = (
        select(LibraryEntry)
        .options(joinedload(LibraryEntry.book))
        .where(LibraryEntry.user_id == user_id)
        .order_by(LibraryEntry.created_at.desc(), LibraryEntry.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def add_to_library(
    db: Session,
    actor: ActorContext,
    entry: LibraryEntryCreate,
    today: Optional[datetime.date] = None,
) -> LibraryEntry:
    """
    Adds a book to the caller's library, or updates the existing entry.

    A status, when sent, goes through the same transition rules as PATCH; explicit
    dates then override the computed ones (except for 'want', which has none).

    Raises:
        Unauthenticated: If there is no caller.
        NotFound: If the book does not exist.
        StoreError: If the write fails.
    """
    actor = require_actor(actor)
    if db.get(Book, entry.book_id) is None:
        raise NotFound("책을 찾을 수 없습니다.")

    current = get_entry(db, actor.user_id, entry.book_id)
    base = current or SimpleNamespace(status="want", started_at=None, finished_at=None, emotion_tag=None)

    status = base.status
    started_at, finished_at = base.started_at, base.finished_at
    if entry.status:
        change = apply_status_transition(base, entry.status, today=today)
        status, started_at, finished_at = change.status, change.started_at, change.finished_at
    if status != "want":
        started_at = entry.started_at or started_at
        finished_at = entry.finished_at or finished_at

    row = {
        "user_id": actor.user_id,
        "book_id": entry.book_id,
        "status": status,
        "started_at": started_at,
        "finished_at": finished_at,
        "emotion_tag": entry.emotion_tag or base.emotion_tag,
    }
    try:
        upsert(db, LibraryEntry, [row], conflict_columns=["user_id", "book_id"], update_columns=_MUTABLE_COLUMNS)
        db.commit()
    except SQLAlchemyError as e:
        logger.exception(f"user_books upsert error for user {actor.user_id}, book {entry.book_id}: {e}")
        db.rollback()
        raise StoreError("Failed to add/update book in library") from e

    logger.info(f"Book {entry.book_id} stored in library of user {actor.user_id} with status '{status}'.")
    stored = get_entry(db, actor.user_id, entry.book_id)
    db.refresh(stored)
    return stored


def update_status(
    db: Session,
    actor: ActorContext,
    change_request: LibraryEntryUpdate,
    today: Optional[datetime.date] = None,
) -> Tuple[LibraryEntry, StatusChange]:
    """
    Moves an entry to a new status (and optionally a new emotion tag).

    Raises:
        Unauthenticated: If there is no caller.
        NotFound: If the book is not in the caller's library.
        StoreError: If the update fails.
    """
    actor = require_actor(actor)
    entry = get_entry(db, actor.user_id, change_request.book_id)
    if entry is None:
        raise NotFound("Book not in user library")

    if "emotion_tag" in change_request.model_fields_set:
        change = apply_status_transition(entry, change_request.status, change_request.emotion_tag, today=today)
    else:
        change = apply_status_transition(entry, change_request.status, today=today)

    entry.status = change.status
    entry.started_at = change.started_at
    entry.finished_at = change.finished_at
    entry.emotion_tag = change.emotion_tag
    db.add(entry)
    try:
        db.commit()
        db.refresh(entry)
    except SQLAlchemyError as e:
        logger.exception(f"user_books status update error for entry {entry.id}: {e}")
        db.rollback()
        raise StoreError("Failed to update status/emotion") from e

    logger.info(f"Library entry {entry.id} of user {actor.user_id} moved to '{change.status}'.")
    return entry, change


def remove_from_library(db: Session, actor: ActorContext, book_id: int) -> bool:
    """
    Removes a book from the caller's library.

    Returns:
        bool: True if an entry was deleted, False if there was none.
    """
    actor = require_actor(actor)
    entry = get_entry(db, actor.user_id, book_id)
    if entry is None:
        logger.info(f"Nothing to remove: book {book_id} is not in the library of user {actor.user_id}.")
        return False
    try:
        db.delete(entry)
        db.commit()
    except SQLAlchemyError as e:
        logger.exception(f"user_books delete error for user {actor.user_id}, book {book_id}: {e}")
        db.rollback()
        raise StoreError("Failed to remove book from library") from e
    logger.info(f"Book {book_id} removed from library of user {actor.user_id}.")
    return True
