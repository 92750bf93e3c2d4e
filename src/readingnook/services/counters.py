"""
Counter aggregation over event tables (likes, comments).

Counts are always derived from the event rows. A toggle is a
read-modify-recompute sequence: check for the actor's row, delete or insert it,
then count again. Concurrent toggles are settled by the unique constraint on
(target, user).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Set

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from readingnook.core.errors import InvalidArgument, StoreError
from readingnook.core.security import ActorContext, require_actor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    liked: bool
    count: int


def _unique_ids(parent_ids: Iterable[Any]) -> list:
    return sorted({pid for pid in parent_ids if pid is not None})


def count_by_parent(db: Session, parent_column: Any, parent_ids: Iterable[int]) -> Dict[int, int]:
    """
    Counts event rows per parent id.

    Args:
        db (Session): SQLAlchemy session.
        parent_column: Foreign-key column of the event table (e.g. QuoteLike.quote_id).
        parent_ids (Iterable[int]): Parents to count for.

    Returns:
        Dict[int, int]: parent id -> count; parents without events are absent.
    """
    ids = _unique_ids(parent_ids)
    if not ids:
        return {}
    stmt = (
        select(parent_column, func.count())
        .where(parent_column.in_(ids))
        .group_by(parent_column)
    )
    return {parent_id: count for parent_id, count in db.execute(stmt).all()}


def ids_with_actor(
    db: Session,
    parent_column: Any,
    user_column: Any,
    parent_ids: Iterable[int],
    user_id: str,
) -> Set[int]:
    """Parent ids among `parent_ids` for which `user_id` has an event row."""
    ids = _unique_ids(parent_ids)
    if not ids or not user_id:
        return set()
    stmt = select(parent_column).where(parent_column.in_(ids), user_column == user_id)
    return set(db.execute(stmt).scalars().all())


def count_for(db: Session, parent_column: Any, target_id: int) -> int:
    stmt = select(func.count()).select_from(parent_column.table).where(parent_column == target_id)
    return db.execute(stmt).scalar_one()


def validate_target_id(target_id: Any, name: str = "id") -> int:
    """Coerces a target id to a positive int or raises InvalidArgument."""
    if target_id is None or isinstance(target_id, bool):
        raise InvalidArgument(f"{name} is required")
    try:
        value = int(target_id)
    except (TypeError, ValueError):
        raise InvalidArgument(f"invalid {name}")
    if value <= 0 or str(value) != str(target_id).strip():
        raise InvalidArgument(f"invalid {name}")
    return value


def toggle_like(db: Session, model: Any, parent_attr: str, actor: ActorContext, target_id: int) -> ToggleResult:
    """
    Adds the actor's like if absent, removes it if present, then recounts.

    Args:
        db (Session): SQLAlchemy session.
        model: Event ORM class with `user_id` and `parent_attr` columns.
        parent_attr (str): Name of the target column (e.g. 'review_id').
        actor (ActorContext): Authenticated caller.
        target_id (int): Liked entity id.

    Returns:
        ToggleResult: New liked state and the authoritative count.

    Raises:
        Unauthenticated: If there is no actor.
        InvalidArgument: If the target id is missing or malformed.
        StoreError: If the toggle cannot be written.
    """
    actor = require_actor(actor)
    target_id = validate_target_id(target_id, parent_attr)
    parent_column = getattr(model, parent_attr)

    existing = db.execute(
        select(model).where(parent_column == target_id, model.user_id == actor.user_id)
    ).scalars().first()

    try:
        if existing is not None:
            db.delete(existing)
            liked = False
        else:
            db.add(model(**{parent_attr: target_id, "user_id": actor.user_id}))
            liked = True
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same (target, user) row first.
        db.rollback()
        logger.info(f"Concurrent like on {model.__tablename__} {target_id} by {actor.user_id}; keeping the stored row.")
        liked = True
    except SQLAlchemyError as e:
        logger.exception(f"Error toggling {model.__tablename__} for target {target_id}: {e}")
        db.rollback()
        raise StoreError("좋아요 처리에 실패했습니다.") from e

    try:
        count = count_for(db, parent_column, target_id)
    except SQLAlchemyError as e:
        logger.exception(f"Error counting {model.__tablename__} for target {target_id}: {e}")
        raise StoreError("좋아요 수를 계산하지 못했습니다.") from e

    logger.info(f"{model.__tablename__}: user {actor.user_id} {'liked' if liked else 'unliked'} {target_id} (count={count}).")
    return ToggleResult(liked=liked, count=count)
