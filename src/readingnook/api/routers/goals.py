from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from readingnook.api.deps import get_current_actor, get_db
from readingnook.core.security import ActorContext
from readingnook.crud.crud_goal import get_goal, set_goal
from readingnook.schemas.goal import GoalUpdate
from readingnook.services.stats import month_window, monthly_progress

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("/monthly")
def read_monthly_goal(db: Session = Depends(get_db), actor: ActorContext = Depends(get_current_actor)):
    window = month_window()
    goal = get_goal(db, actor.user_id, window.year, window.month)
    return {
        "year": window.year,
        "month": window.month,
        "target": goal.target if goal else None,
        "progress": monthly_progress(db, actor.user_id),
    }


@router.post("/monthly")
def write_monthly_goal(
    goal_update: GoalUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    window = month_window()
    goal = set_goal(db, actor, window.year, window.month, goal_update.target)
    return {"ok": True, "target": goal.target}
