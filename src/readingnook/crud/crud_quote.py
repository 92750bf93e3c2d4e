"""
CRUD operations for quotes, quote likes and quote comments.
Like and comment counts are never stored on the quote; they are counted on read
from quote_likes and quote_comments.
"""

import logging
import random
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.errors import NotFound, StoreError
from ..core.security import ActorContext, ensure_owner, require_actor
from ..models.book import Book
from ..models.profile import Profile
from ..models.quote import Quote, QuoteComment, QuoteLike
from ..schemas.quote import QuoteCommentCreate, QuoteCreate
from ..services.counters import ToggleResult, count_by_parent, ids_with_actor, toggle_like, validate_target_id
from .crud_profile import ensure_profile

logger = logging.getLogger(__name__)


def _with_nickname(db: Session):
    return db.query(Quote, Profile.nickname).\
            options(joinedload(Quote.book)).\
            outerjoin(Profile, Quote.user_id == Profile.id)


def get_quote_by_id(db: Session, quote_id: int) -> Optional[Quote]:
    return db.get(Quote, quote_id)


def get_quotes_for_book(db: Session, book_id: int) -> List[Tuple[Quote, Optional[str]]]:
    """
    Quotes of a book, newest first.

    Returns:
        List of (Quote, nickname) rows.
    """
    return _with_nickname(db).\
            filter(Quote.book_id == book_id).\
            order_by(desc(Quote.created_at), desc(Quote.id)).\
            all()


def get_recent_quotes(db: Session, limit: int) -> List[Tuple[Quote, Optional[str]]]:
    return _with_nickname(db).\
            order_by(desc(Quote.created_at), desc(Quote.id)).\
            limit(limit).all()


def get_random_quote(db: Session, pool_size: int = 50, rng: Optional[random.Random] = None) -> Optional[Tuple[Quote, Optional[str]]]:
    """One random quote out of the `pool_size` most recent, or None when there are none."""
    pool = get_recent_quotes(db, pool_size)
    if not pool:
        return None
    return (rng or random).choice(pool)


def get_liked_quotes(db: Session, user_id: str, limit: int = 100) -> List[Tuple[Quote, Optional[str]]]:
    """Quotes the user liked, most recently liked first."""
    return _with_nickname(db).\
            join(QuoteLike, QuoteLike.quote_id == Quote.id).\
            filter(QuoteLike.user_id == user_id).\
            order_by(desc(QuoteLike.created_at), desc(QuoteLike.id)).\
            limit(limit).all()


def count_quote_likes(db: Session, quote_ids: List[int]) -> Dict[int, int]:
    return count_by_parent(db, QuoteLike.quote_id, quote_ids)


def count_quote_comments(db: Session, quote_ids: List[int]) -> Dict[int, int]:
    return count_by_parent(db, QuoteComment.quote_id, quote_ids)


def get_liked_quote_ids(db: Session, quote_ids: List[int], user_id: Optional[str]) -> Set[int]:
    if not user_id:
        return set()
    return ids_with_actor(db, QuoteLike.quote_id, QuoteLike.user_id, quote_ids, user_id)


def create_quote(db: Session, quote: QuoteCreate, actor: Optional[ActorContext]) -> Quote:
    """Stores a quote after making sure the author's profile exists."""
    actor = ensure_profile(db, actor)
    if db.get(Book, quote.book_id) is None:
        raise NotFound("책을 찾을 수 없습니다.")

    db_quote = Quote(user_id=actor.user_id, book_id=quote.book_id, content=quote.content, page=quote.page)
    db.add(db_quote)
    try:
        db.commit()
        db.refresh(db_quote)
        logger.info(f"Quote {db_quote.id} created for book {quote.book_id} by user {actor.user_id}.")
    except SQLAlchemyError as e:
        logger.exception(f"Error committing quote for book {quote.book_id}: {e}")
        db.rollback()
        raise StoreError("인용문 등록에 실패했습니다.") from e
    return db_quote


def delete_quote(db: Session, quote_id: int, actor: Optional[ActorContext]) -> None:
    """
    Deletes the caller's own quote. Its likes and comments go with it.

    Raises:
        NotFound: If the quote does not exist.
        Forbidden: If it belongs to someone else.
    """
    actor = require_actor(actor)
    db_quote = ensure_owner(get_quote_by_id(db, quote_id), actor, "quote")
    try:
        db.delete(db_quote)
        db.commit()
        logger.info(f"Quote {quote_id} deleted by user {actor.user_id}.")
    except SQLAlchemyError as e:
        logger.exception(f"Error deleting quote {quote_id}: {e}")
        db.rollback()
        raise StoreError("failed to delete quote") from e


def toggle_quote_like(db: Session, quote_id: int, actor: Optional[ActorContext]) -> ToggleResult:
    """Likes or unlikes a quote; the count is derived on read, nothing is cached."""
    actor = require_actor(actor)
    quote_id = validate_target_id(quote_id, "quote_id")
    if get_quote_by_id(db, quote_id) is None:
        raise NotFound("quote not found")

    actor = ensure_profile(db, actor)
    return toggle_like(db, QuoteLike, "quote_id", actor, quote_id)


def get_comments(db: Session, quote_id: int) -> List[Tuple[QuoteComment, Optional[str]]]:
    """Comments of a quote with the author's nickname, newest first."""
    return db.query(QuoteComment, Profile.nickname).\
            outerjoin(Profile, QuoteComment.user_id == Profile.id).\
            filter(QuoteComment.quote_id == quote_id).\
            order_by(desc(QuoteComment.created_at), desc(QuoteComment.id)).\
            all()


def create_comment(db: Session, comment: QuoteCommentCreate, actor: Optional[ActorContext]) -> Tuple[QuoteComment, str]:
    """
    Adds a comment to a quote.

    Returns:
        (QuoteComment, nickname) of the new comment.
    """
    actor = require_actor(actor)
    if get_quote_by_id(db, comment.quote_id) is None:
        raise NotFound("quote not found")

    actor = ensure_profile(db, actor)
    db_comment = QuoteComment(quote_id=comment.quote_id, user_id=actor.user_id, content=comment.content)
    db.add(db_comment)
    try:
        db.commit()
        db.refresh(db_comment)
        logger.info(f"Comment {db_comment.id} added to quote {comment.quote_id} by user {actor.user_id}.")
    except SQLAlchemyError as e:
        logger.exception(f"Error committing comment on quote {comment.quote_id}: {e}")
        db.rollback()
        raise StoreError("댓글 작성 중 오류가 발생했습니다.") from e

    profile = db.get(Profile, actor.user_id)
    return db_comment, profile.nickname if profile else actor.display_name


def delete_comment(db: Session, comment_id: int, actor: Optional[ActorContext]) -> None:
    actor = require_actor(actor)
    db_comment = ensure_owner(db.get(QuoteComment, comment_id), actor, "comment")
    try:
        db.delete(db_comment)
        db.commit()
        logger.info(f"Comment {comment_id} deleted by user {actor.user_id}.")
    except SQLAlchemyError as e:
        logger.exception(f"Error deleting comment {comment_id}: {e}")
        db.rollback()
        raise StoreError("댓글 삭제에 실패했습니다.") from e
