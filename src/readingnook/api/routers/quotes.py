"""
Quote endpoints: quotes of a book, highlights, likes and comments.
Like and comment counts are computed on every read.
"""

from typing import Any, Dict, List, Optional, Set

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from readingnook.api.deps import get_actor, get_current_actor, get_db, target_id
from readingnook.core.errors import InvalidArgument
from readingnook.core.security import ActorContext
from readingnook.crud import (
    count_quote_comments,
    count_quote_likes,
    create_comment,
    create_quote,
    delete_comment,
    delete_quote,
    get_comments,
    get_liked_quote_ids,
    get_liked_quotes,
    get_quotes_for_book,
    get_random_quote,
    get_recent_quotes,
    toggle_quote_like,
)
from readingnook.crud.crud_profile import ANONYMOUS_NICKNAME
from readingnook.schemas.book import BookSummary
from readingnook.schemas.quote import QuoteCommentCreate, QuoteCommentSchema, QuoteCreate, QuoteSchema
from readingnook.services.counters import validate_target_id

router = APIRouter(tags=["quotes"])

HIGHLIGHT_POOL = 12
HIGHLIGHT_SIZE = 6
RANDOM_POOL = 50


def _quote_item(
    quote,
    nickname: Optional[str],
    likes: Optional[Dict[int, int]] = None,
    comments: Optional[Dict[int, int]] = None,
    liked: Optional[Set[int]] = None,
) -> Dict:
    data = QuoteSchema.model_validate(quote).model_dump()
    data["nickname"] = nickname or ANONYMOUS_NICKNAME
    data["book"] = BookSummary.model_validate(quote.book).model_dump() if quote.book else None
    if likes is not None:
        data["likes_count"] = likes.get(quote.id, 0)
    if comments is not None:
        data["comments_count"] = comments.get(quote.id, 0)
    if liked is not None:
        data["likedByMe"] = quote.id in liked
    return data


def _with_counts(db: Session, rows: List, user_id: Optional[str] = None, with_liked: bool = False) -> List[Dict]:
    ids = [quote.id for quote, _ in rows]
    likes = count_quote_likes(db, ids)
    comments = count_quote_comments(db, ids)
    liked = get_liked_quote_ids(db, ids, user_id) if with_liked else None
    return [_quote_item(quote, nickname, likes, comments, liked) for quote, nickname in rows]


@router.get("/quotes")
def list_quotes(
    book_id: Optional[int] = Query(None, alias="bookId"),
    db: Session = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    if book_id is None:
        raise InvalidArgument("bookId is required")
    rows = get_quotes_for_book(db, book_id)
    return {"quotes": _with_counts(db, rows, actor.user_id if actor else None, with_liked=True)}


@router.post("/quotes", status_code=201)
def post_quote(
    quote: QuoteCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    db_quote = create_quote(db, quote, actor)
    return {"quote": QuoteSchema.model_validate(db_quote).model_dump()}


@router.delete("/quotes")
def remove_quote(
    quote_id: Optional[str] = Query(None, alias="id"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    delete_quote(db, validate_target_id(quote_id, "id"), actor)
    return {"ok": True}


@router.get("/quotes/highlight")
def quote_highlight(db: Session = Depends(get_db)):
    rows = get_recent_quotes(db, HIGHLIGHT_POOL)[:HIGHLIGHT_SIZE]
    return {"quotes": _with_counts(db, rows)}


@router.get("/quotes/liked")
def liked_quotes(db: Session = Depends(get_db), actor: ActorContext = Depends(get_current_actor)):
    rows = get_liked_quotes(db, actor.user_id)
    ids = [quote.id for quote, _ in rows]
    likes = count_quote_likes(db, ids)
    return {"quotes": [_quote_item(quote, nickname, likes) for quote, nickname in rows]}


@router.get("/quotes/random")
def random_quote(db: Session = Depends(get_db)):
    row = get_random_quote(db, RANDOM_POOL)
    if row is None:
        return {"quote": None}
    quote, nickname = row
    return {"quote": _quote_item(quote, nickname)}


@router.post("/quote-likes")
def like_quote(
    actor: ActorContext = Depends(get_current_actor),
    quote_id: Any = Depends(target_id("quoteId", "quote_id")),
    db: Session = Depends(get_db),
):
    result = toggle_quote_like(db, quote_id, actor)
    return {"liked": result.liked, "likesCount": result.count}


@router.get("/quote-comments")
def list_comments(
    quote_id: Optional[str] = Query(None, alias="quoteId"),
    db: Session = Depends(get_db),
):
    rows = get_comments(db, validate_target_id(quote_id, "quoteId"))
    comments = []
    for comment, nickname in rows:
        data = QuoteCommentSchema.model_validate(comment).model_dump()
        data["nickname"] = nickname or ANONYMOUS_NICKNAME
        comments.append(data)
    return {"comments": comments}


@router.post("/quote-comments", status_code=201)
def post_comment(
    comment: QuoteCommentCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    db_comment, nickname = create_comment(db, comment, actor)
    data = QuoteCommentSchema.model_validate(db_comment).model_dump()
    data["nickname"] = nickname
    return {"comment": data}


@router.delete("/quote-comments")
def remove_comment(
    comment_id: Optional[str] = Query(None, alias="id"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
):
    delete_comment(db, validate_target_id(comment_id, "id"), actor)
    return {"ok": True}
