"""
CRUD operations for the Profile model.
Profiles are created lazily: every write path whose rows reference profiles.id
calls ensure_profile first, and the write does not proceed if it fails.
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import DependencyFailed
from ..core.security import ActorContext, require_actor
from ..db.upsert import upsert
from ..models.profile import Profile

logger = logging.getLogger(__name__)

ANONYMOUS_NICKNAME = "익명"


def ensure_profile(db: Session, actor: Optional[ActorContext]) -> ActorContext:
    """
    Idempotently creates the caller's profile row.

    An existing row, and the nickname the user may have chosen, is left untouched.

    Args:
        db (Session): SQLAlchemy session.
        actor (Optional[ActorContext]): Caller.

    Returns:
        ActorContext: The authenticated actor.

    Raises:
        Unauthenticated: If there is no caller.
        DependencyFailed: If the profile row cannot be written.
    """
    actor = require_actor(actor)
    try:
        upsert(
            db,
            Profile,
            [{"id": actor.user_id, "nickname": actor.display_name}],
            conflict_columns=["id"],
        )
        db.commit()
    except SQLAlchemyError as e:
        logger.exception(f"profiles upsert failed for user {actor.user_id}: {e}")
        db.rollback()
        raise DependencyFailed("사용자 프로필을 준비하지 못했습니다.") from e
    return actor


def get_nicknames(db: Session, user_ids: Iterable[str]) -> Dict[str, str]:
    """Maps user ids to nicknames; users without a profile are absent."""
    ids = sorted({user_id for user_id in user_ids if user_id})
    if not ids:
        return {}
    rows = db.execute(select(Profile.id, Profile.nickname).where(Profile.id.in_(ids))).all()
    return {row.id: row.nickname or ANONYMOUS_NICKNAME for row in rows}
