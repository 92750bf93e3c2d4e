"""
Dashboard aggregates: activity ranking, genre trend, reading trend and monthly
goal progress.

All windows are calendar months on the server clock, not the reader's time zone.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from readingnook.core.errors import StoreError
from readingnook.crud.crud_profile import ANONYMOUS_NICKNAME, get_nicknames
from readingnook.models.book import Book
from readingnook.models.library import LibraryEntry
from readingnook.models.quote import QuoteComment, QuoteLike

logger = logging.getLogger(__name__)

WEIGHTS = {"finished": 0.5, "comments": 0.3, "likes": 0.2}
# Same weights in tenths, so that scores compare exactly.
_WEIGHTS_X10 = {"finished": 5, "comments": 3, "likes": 2}
RANKING_SIZE = 5
TREND_MONTHS = 12
UNCATEGORIZED = "기타"


@dataclass(frozen=True)
class MonthWindow:
    year: int
    month: int
    start: datetime.date
    next_start: datetime.date

    @property
    def start_at(self) -> datetime.datetime:
        return datetime.datetime.combine(self.start, datetime.time.min)

    @property
    def next_start_at(self) -> datetime.datetime:
        return datetime.datetime.combine(self.next_start, datetime.time.min)


def shift_month(year: int, month: int, delta: int) -> tuple:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_window(today: Optional[datetime.date] = None) -> MonthWindow:
    """Calendar month containing `today` as [start, next_start)."""
    today = today or datetime.date.today()
    next_year, next_month = shift_month(today.year, today.month, 1)
    return MonthWindow(
        year=today.year,
        month=today.month,
        start=today.replace(day=1),
        next_start=datetime.date(next_year, next_month, 1),
    )


def _finished_in(window: MonthWindow):
    return (
        LibraryEntry.status == "finished",
        LibraryEntry.finished_at >= window.start,
        LibraryEntry.finished_at < window.next_start,
    )


def monthly_progress(db: Session, user_id: str, today: Optional[datetime.date] = None) -> int:
    """Number of books the user finished in the current month."""
    window = month_window(today)
    stmt = select(func.count(LibraryEntry.id)).where(LibraryEntry.user_id == user_id, *_finished_in(window))
    return db.execute(stmt).scalar_one()


@dataclass
class ActivityCounts:
    finished: int = 0
    likes: int = 0
    comments: int = 0

    @property
    def score_x10(self) -> int:
        return (
            self.finished * _WEIGHTS_X10["finished"]
            + self.comments * _WEIGHTS_X10["comments"]
            + self.likes * _WEIGHTS_X10["likes"]
        )


def rank_activity(
    stats: Mapping[str, ActivityCounts],
    nicknames: Mapping[str, str],
    size: int = RANKING_SIZE,
) -> List[Dict]:
    """
    Orders users by weighted activity.

    score = 0.5*finished + 0.3*comments + 0.2*likes. Users scoring 0 are dropped;
    ties are broken by finished, then likes, then comments (all descending).

    Args:
        stats (Mapping[str, ActivityCounts]): Per-user counts for the window.
        nicknames (Mapping[str, str]): Display names; missing users get the placeholder.
        size (int): Number of entries kept.

    Returns:
        List[Dict]: Leaderboard entries, best first.
    """
    ranked = sorted(
        ((user_id, counts) for user_id, counts in stats.items() if counts.score_x10 > 0),
        key=lambda item: (-item[1].score_x10, -item[1].finished, -item[1].likes, -item[1].comments, item[0]),
    )
    return [
        {
            "userId": user_id,
            "finishedCount": counts.finished,
            "likeCount": counts.likes,
            "commentCount": counts.comments,
            "nickname": nicknames.get(user_id) or ANONYMOUS_NICKNAME,
            "score": counts.score_x10 / 10,
        }
        for user_id, counts in ranked[:size]
    ]


def _count_per_user(db: Session, user_column, *conditions) -> Dict[str, int]:
    stmt = select(user_column, func.count()).where(*conditions).group_by(user_column)
    return {user_id: count for user_id, count in db.execute(stmt).all() if user_id}


def activity_ranking(db: Session, now: Optional[datetime.datetime] = None) -> Dict:
    """
    Top readers of the current month by finished books, quote comments and quote likes.

    Raises:
        StoreError: If any of the counts cannot be read.
    """
    now = now or datetime.datetime.now()
    window = month_window(now.date())

    try:
        finished = _count_per_user(db, LibraryEntry.user_id, *_finished_in(window))
        likes = _count_per_user(
            db, QuoteLike.user_id,
            QuoteLike.created_at >= window.start_at, QuoteLike.created_at < window.next_start_at,
        )
        comments = _count_per_user(
            db, QuoteComment.user_id,
            QuoteComment.created_at >= window.start_at, QuoteComment.created_at < window.next_start_at,
        )
    except SQLAlchemyError as e:
        logger.exception(f"activity-ranking query error: {e}")
        raise StoreError("활동 랭킹을 불러오는 중 오류가 발생했습니다.") from e

    stats: Dict[str, ActivityCounts] = {}
    for user_id, count in finished.items():
        stats.setdefault(user_id, ActivityCounts()).finished = count
    for user_id, count in likes.items():
        stats.setdefault(user_id, ActivityCounts()).likes = count
    for user_id, count in comments.items():
        stats.setdefault(user_id, ActivityCounts()).comments = count

    try:
        nicknames = get_nicknames(db, stats.keys())
    except SQLAlchemyError as e:
        # Ranking still works with placeholder names.
        logger.exception(f"activity-ranking profiles query error: {e}")
        nicknames = {}

    return {
        "year": window.year,
        "month": window.month,
        "ranks": rank_activity(stats, nicknames),
        "weights": dict(WEIGHTS),
    }


def genre_trend(db: Session, today: Optional[datetime.date] = None) -> Dict:
    """
    Finished books of the current month (all users) grouped by book category.
    Blank or missing categories are counted under UNCATEGORIZED.
    """
    window = month_window(today)
    stmt = (
        select(Book.category)
        .select_from(LibraryEntry)
        .join(Book, LibraryEntry.book_id == Book.id)
        .where(*_finished_in(window))
    )
    try:
        categories = db.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        logger.exception(f"genre stats query error: {e}")
        raise StoreError("장르 통계를 불러오는 중 오류가 발생했습니다.") from e

    counts: Dict[str, int] = {}
    for raw in categories:
        category = (raw or "").strip() or UNCATEGORIZED
        counts[category] = counts.get(category, 0) + 1

    genres = [
        {"category": category, "count": count}
        for category, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]
    return {
        "year": window.year,
        "month": window.month,
        "totalFinishedThisMonth": len(categories),
        "genres": genres,
    }


def reading_trend(db: Session, user_id: str, today: Optional[datetime.date] = None) -> List[Dict]:
    """
    Finished books per month for the last 12 months (current month included),
    oldest first, zero-filled, with a running total.
    """
    window = month_window(today)
    first_year, first_month = shift_month(window.year, window.month, -(TREND_MONTHS - 1))
    start = datetime.date(first_year, first_month, 1)

    stmt = select(LibraryEntry.finished_at).where(
        LibraryEntry.user_id == user_id,
        LibraryEntry.status == "finished",
        LibraryEntry.finished_at >= start,
        LibraryEntry.finished_at < window.next_start,
    )
    try:
        finished_dates = db.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        logger.exception(f"reading-trend query error for user {user_id}: {e}")
        raise StoreError("독서량을 불러오는 중 오류가 발생했습니다.") from e

    counts: Dict[str, int] = {}
    for finished_at in finished_dates:
        if finished_at is None:
            continue
        key = f"{finished_at.year}-{finished_at.month:02d}"
        counts[key] = counts.get(key, 0) + 1

    trend, cumulative = [], 0
    for offset in range(TREND_MONTHS):
        year, month = shift_month(first_year, first_month, offset)
        key = f"{year}-{month:02d}"
        cumulative += counts.get(key, 0)
        trend.append({"month": key, "count": counts.get(key, 0), "cumulative": cumulative})
    return trend
