# tests/crud/test_crud_goal.py
import pytest

from readingnook.core.errors import Unauthenticated
from readingnook.crud.crud_goal import get_goal, set_goal
from readingnook.models.goal import MonthlyGoal


def test_get_goal_when_unset(db_session, actor):
    assert get_goal(db_session, actor.user_id, 2025, 5) is None


def test_set_goal_upserts(db_session, actor):
    set_goal(db_session, actor, 2025, 5, 3)
    goal = set_goal(db_session, actor, 2025, 5, 10)

    assert goal.target == 10
    assert db_session.query(MonthlyGoal).count() == 1


def test_goals_are_per_month_and_user(db_session, actor, other_actor):
    set_goal(db_session, actor, 2025, 5, 3)
    set_goal(db_session, actor, 2025, 6, 4)
    set_goal(db_session, other_actor, 2025, 5, 7)

    assert get_goal(db_session, actor.user_id, 2025, 5).target == 3
    assert get_goal(db_session, actor.user_id, 2025, 6).target == 4
    assert get_goal(db_session, other_actor.user_id, 2025, 5).target == 7


def test_set_goal_zero_is_allowed(db_session, actor):
    assert set_goal(db_session, actor, 2025, 1, 0).target == 0


def test_set_goal_requires_actor(db_session):
    with pytest.raises(Unauthenticated):
        set_goal(db_session, None, 2025, 1, 3)
