from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from readingnook.api.deps import get_current_actor, get_db
from readingnook.core.security import ActorContext
from readingnook.crud import add_to_library, get_entry, list_library, remove_from_library, update_status
from readingnook.crud.crud_goal import get_goal
from readingnook.schemas.library import LibraryEntryCreate, LibraryEntrySchema, LibraryEntryUpdate, LibraryItemSchema
from readingnook.services.stats import month_window, monthly_progress

router = APIRouter(prefix="/user-books", tags=["library"])


@router.get("")
def read_library(
    book_id: Optional[int] = Query(None, alias="bookId"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    if book_id is not None:
        entry = get_entry(db, actor.user_id, book_id)
        return {
            "exists": entry is not None,
            "item": LibraryEntrySchema.model_validate(entry).model_dump() if entry else None,
        }
    items = list_library(db, actor.user_id)
    return {"items": [LibraryItemSchema.model_validate(item).model_dump() for item in items]}


@router.post("")
def add_book(
    entry: LibraryEntryCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    add_to_library(db, actor, entry)
    return {"ok": True}


@router.patch("")
def change_status(
    change_request: LibraryEntryUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    entry, change = update_status(db, actor, change_request)

    # Goal widget on the client refreshes from this snapshot.
    window = month_window()
    goal = get_goal(db, actor.user_id, window.year, window.month)
    return {
        "ok": True,
        "status": change.status,
        "started_at": change.started_at,
        "finished_at": change.finished_at,
        "emotion_tag": change.emotion_tag,
        "goal": {
            "year": window.year,
            "month": window.month,
            "target": goal.target if goal else None,
            "progress": monthly_progress(db, actor.user_id),
        },
    }


@router.delete("")
def remove_book(
    book_id: int = Query(..., alias="bookId", gt=0),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    remove_from_library(db, actor, book_id)
    return {"ok": True}
