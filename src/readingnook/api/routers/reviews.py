from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from readingnook.api.deps import get_actor, get_current_actor, get_db, target_id
from readingnook.core.errors import InvalidArgument
from readingnook.core.security import ActorContext
from readingnook.crud import (
    create_review,
    delete_review,
    get_liked_review_ids,
    get_review_feed,
    get_reviews_for_book,
    toggle_review_like,
    update_review,
)
from readingnook.crud.crud_profile import ANONYMOUS_NICKNAME
from readingnook.schemas.book import BookSummary
from readingnook.schemas.review import ReviewCreate, ReviewSchema, ReviewUpdate
from readingnook.services.counters import validate_target_id

router = APIRouter(tags=["reviews"])


def _feed_item(review, nickname):
    data = ReviewSchema.model_validate(review).model_dump()
    data["nickname"] = nickname or ANONYMOUS_NICKNAME
    data["book"] = BookSummary.model_validate(review.book).model_dump() if review.book else None
    return data


@router.get("/reviews")
def list_reviews(
    book_id: Optional[int] = Query(None, alias="bookId"),
    db: Session = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    if book_id is None:
        raise InvalidArgument("bookId is required")
    reviews = get_reviews_for_book(db, book_id)
    liked = get_liked_review_ids(db, [r.id for r in reviews], actor.user_id if actor else None)
    payload = []
    for review in reviews:
        data = ReviewSchema.model_validate(review).model_dump()
        data["likedByMe"] = review.id in liked
        payload.append(data)
    return {"reviews": payload}


@router.post("/reviews", status_code=201)
def post_review(
    review: ReviewCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    db_review = create_review(db, review, actor)
    return {"review": ReviewSchema.model_validate(db_review).model_dump()}


@router.patch("/reviews")
def patch_review(
    changes: ReviewUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    db_review = update_review(db, changes, actor)
    return {"review": ReviewSchema.model_validate(db_review).model_dump()}


@router.delete("/reviews")
def remove_review(
    actor: ActorContext = Depends(get_current_actor),
    review_id: Any = Depends(target_id("reviewId", "review_id")),
    db: Session = Depends(get_db),
):
    delete_review(db, validate_target_id(review_id, "reviewId"), actor)
    return {"ok": True}


@router.get("/reviews/feed")
def review_feed(db: Session = Depends(get_db)):
    latest, top_liked = get_review_feed(db)
    return {
        "latest": [_feed_item(review, nickname) for review, nickname in latest],
        "topLiked": [_feed_item(review, nickname) for review, nickname in top_liked],
    }


@router.post("/review-likes")
def like_review(
    actor: ActorContext = Depends(get_current_actor),
    review_id: Any = Depends(target_id("reviewId", "review_id")),
    db: Session = Depends(get_db),
):
    result = toggle_review_like(db, review_id, actor)
    return {"liked": result.liked, "likesCount": result.count}
