from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from readingnook.api.deps import get_current_actor, get_db
from readingnook.core.security import ActorContext
from readingnook.services.stats import activity_ranking, genre_trend, reading_trend

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/genres")
def genres(db: Session = Depends(get_db)):
    return genre_trend(db)


@router.get("/reading-trend")
def trend(db: Session = Depends(get_db), actor: ActorContext = Depends(get_current_actor)):
    return {"trend": reading_trend(db, actor.user_id)}


@router.get("/activity-ranking")
def ranking(db: Session = Depends(get_db)):
    return activity_ranking(db)
