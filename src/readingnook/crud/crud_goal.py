"""
CRUD operations for monthly reading goals.
A goal is unique per (user, year, month) and is set with an upsert.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import StoreError
from ..core.security import ActorContext, require_actor
from ..db.upsert import upsert
from ..models.goal import MonthlyGoal

logger = logging.getLogger(__name__)


def get_goal(db: Session, user_id: str, year: int, month: int) -> Optional[MonthlyGoal]:
    """
    Fetches the goal of a user for one month.

    Args:
        db (Session): SQLAlchemy session.
        user_id (str): Owner id.
        year (int): Calendar year.
        month (int): Calendar month (1-12).

    Returns:
        Optional[MonthlyGoal]: The goal, or None if none was set.
    """
    stmt = select(MonthlyGoal).where(
        MonthlyGoal.user_id == user_id,
        MonthlyGoal.year == year,
        MonthlyGoal.month == month,
    )
    return db.execute(stmt).scalars().first()


def set_goal(db: Session, actor: Optional[ActorContext], year: int, month: int, target: int) -> MonthlyGoal:
    """
    Creates or replaces the caller's goal for the given month.

    Raises:
        Unauthenticated: If there is no caller.
        StoreError: If the upsert fails.
    """
    actor = require_actor(actor)
    row = {"user_id": actor.user_id, "year": year, "month": month, "target": target}
    try:
        upsert(db, MonthlyGoal, [row], conflict_columns=["user_id", "year", "month"], update_columns=["target"])
        db.commit()
    except SQLAlchemyError as e:
        logger.exception(f"monthly_goals upsert error for user {actor.user_id}: {e}")
        db.rollback()
        raise StoreError("목표를 저장하는 중 오류가 발생했습니다.") from e

    logger.info(f"Goal for {year}-{month:02d} of user {actor.user_id} set to {target}.")
    goal = get_goal(db, actor.user_id, year, month)
    db.refresh(goal)
    return goal
