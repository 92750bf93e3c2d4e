import datetime
import logging
from typing import List, Optional, Set, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.errors import NotFound, StoreError
from ..core.security import ActorContext, ensure_owner, require_actor
from ..models.book import Book
from ..models.profile import Profile
from ..models.review import Review, ReviewLike
from ..schemas.review import ReviewCreate, ReviewUpdate
from ..services.counters import ToggleResult, ids_with_actor, toggle_like, validate_target_id
from .crud_profile import ensure_profile

logger = logging.getLogger(__name__)


def _sync_likes_count(db: Session, review_id: int, likes_count: int) -> None:
    """
    Writes the recomputed like count into reviews.likes_count.
    The cached value is best-effort: a failure is logged and the toggle still succeeds.
    """
    try:
        review = db.get(Review, review_id)
        if review is None:
            return
        review.likes_count = likes_count
        db.add(review)
        db.commit()
    except SQLAlchemyError as e:
        logger.exception(f"reviews.likes_count update error for review {review_id}: {e}")
        db.rollback()


def create_review(db: Session, review: ReviewCreate, actor: ActorContext) -> Review:
    """Creates a review after making sure the author's profile exists."""
    actor = ensure_profile(db, actor)
    if db.get(Book, review.book_id) is None:
        raise NotFound("책을 찾을 수 없습니다.")

    db_review = Review(
        user_id=actor.user_id,
        book_id=review.book_id,
        rating=review.rating,
        content=review.content,
        likes_count=0,
    )
    db.add(db_review)
    try:
        db.commit()
        db.refresh(db_review)
        logger.info(f"Review {db_review.id} created for book {review.book_id} by user {actor.user_id}.")
    except SQLAlchemyError as e:
        logger.exception(f"Error committing review creation for book {review.book_id}: {e}")
        db.rollback()
        raise StoreError("Failed to create review") from e

    return db_review


def get_review_by_id(db: Session, review_id: int) -> Review | None:
    return db.get(Review, review_id)


def get_reviews_for_book(db: Session, book_id: int, limit: int = 50) -> list[Review]:
    """Latest `limit` reviews of a book, newest first."""
    return db.query(Review).\
            filter(Review.book_id == book_id).\
            order_by(desc(Review.created_at), desc(Review.id)).\
            limit(limit).all()


def get_liked_review_ids(db: Session, review_ids: List[int], user_id: Optional[str]) -> Set[int]:
    """Ids among `review_ids` the user has liked (empty for anonymous callers)."""
    if not user_id:
        return set()
    return ids_with_actor(db, ReviewLike.review_id, ReviewLike.user_id, review_ids, user_id)


def update_review(db: Session, changes: ReviewUpdate, actor: ActorContext) -> Review:
    """
    Edits content and rating of the caller's own review.

    Raises:
        NotFound: If the review does not exist.
        Forbidden: If it belongs to someone else.
    """
    actor = require_actor(actor)
    db_review = ensure_owner(get_review_by_id(db, changes.review_id), actor, "review")

    db_review.content = changes.content
    db_review.rating = changes.rating
    db_review.updated_at = datetime.datetime.now()
    db.add(db_review)
    try:
        db.commit()
        db.refresh(db_review)
        logger.info(f"Review {db_review.id} updated by user {actor.user_id}.")
    except SQLAlchemyError as e:
        logger.exception(f"Error committing update for review ID {changes.review_id}: {e}")
        db.rollback()
        raise StoreError("리뷰 수정에 실패했습니다.") from e
    return db_review


def delete_review(db: Session, review_id: int, actor: ActorContext) -> None:
    """
    Permanently deletes the caller's own review together with its likes.

    Raises:
        NotFound: If the review does not exist.
        Forbidden: If it belongs to someone else.
    """
    actor = require_actor(actor)
    db_review = ensure_owner(get_review_by_id(db, review_id), actor, "review")
    try:
        db.delete(db_review)
        db.commit()
        logger.info(f"Review {review_id} deleted by user {actor.user_id}.")
    except SQLAlchemyError as e:
        logger.exception(f"Error committing delete for review ID {review_id}: {e}")
        db.rollback()
        raise StoreError("Failed to delete review") from e


def toggle_review_like(db: Session, review_id: int, actor: Optional[ActorContext]) -> ToggleResult:
    """
    Likes or unlikes a review, then writes the authoritative count back into
    reviews.likes_count.
    """
    actor = require_actor(actor)
    review_id = validate_target_id(review_id, "reviewId")
    if get_review_by_id(db, review_id) is None:
        raise NotFound("review not found")

    actor = ensure_profile(db, actor)
    result = toggle_like(db, ReviewLike, "review_id", actor, review_id)
    _sync_likes_count(db, review_id, result.count)
    return result


def _feed_query(db: Session):
    return db.query(Review, Profile.nickname).\
            options(joinedload(Review.book)).\
            join(Book, Review.book_id == Book.id).\
            join(Profile, Review.user_id == Profile.id)


def get_review_feed(db: Session, limit: int = 5) -> Tuple[list, list]:
    """
    Returns (latest, top_liked) as lists of (Review, nickname) rows.
    top_liked only holds reviews with at least one like, most liked first.
    """
    latest = _feed_query(db).\
            order_by(desc(Review.created_at), desc(Review.id)).\
            limit(limit).all()
    top_liked = _feed_query(db).\
            filter(Review.likes_count > 0).\
            order_by(desc(Review.likes_count), desc(Review.created_at), desc(Review.id)).\
            limit(limit).all()
    return latest, top_liked
