# tests/api/test_profile_failure_api.py
import pytest
from sqlalchemy.exc import OperationalError

from readingnook.crud import crud_profile
from readingnook.models.quote import Quote, QuoteComment, QuoteLike
from readingnook.models.review import Review, ReviewLike

PROFILE_ERROR = {"error": "사용자 프로필을 준비하지 못했습니다."}


@pytest.fixture
def seeded(client, headers, make_book):
    """A book with one review and one quote, written while profiles still work."""
    book = make_book()
    review = client.post("/api/reviews", json={"bookId": book.id, "rating": 4, "content": "좋은 책"}, headers=headers)
    quote = client.post("/api/quotes", json={"bookId": book.id, "content": "새는 알에서 나온다."}, headers=headers)
    return {"book_id": book.id, "review_id": review.json()["review"]["id"], "quote_id": quote.json()["quote"]["id"]}


@pytest.fixture
def broken_profiles(monkeypatch, seeded):
    def failing_upsert(*args, **kwargs):
        raise OperationalError("INSERT INTO profiles", {}, Exception("database is locked"))

    monkeypatch.setattr(crud_profile, "upsert", failing_upsert)


@pytest.mark.parametrize("send", [
    lambda client, ids, h: client.post(
        "/api/reviews", json={"bookId": ids["book_id"], "rating": 5, "content": "두 번째"}, headers=h
    ),
    lambda client, ids, h: client.post("/api/quotes", json={"bookId": ids["book_id"], "content": "또 다른 문장"}, headers=h),
    lambda client, ids, h: client.post("/api/quote-comments", json={"quoteId": ids["quote_id"], "content": "공감"}, headers=h),
    lambda client, ids, h: client.post("/api/quote-likes", json={"quoteId": ids["quote_id"]}, headers=h),
    lambda client, ids, h: client.post("/api/review-likes", json={"reviewId": ids["review_id"]}, headers=h),
])
def test_failed_profile_write_blocks_the_main_write(client, other_headers, db_session, seeded, broken_profiles, send):
    response = send(client, seeded, other_headers)

    assert response.status_code == 500
    assert response.json() == PROFILE_ERROR
    db_session.expire_all()
    assert db_session.query(Review).count() == 1
    assert db_session.query(Quote).count() == 1
    assert db_session.query(QuoteComment).count() == 0
    assert db_session.query(QuoteLike).count() == 0
    assert db_session.query(ReviewLike).count() == 0
    assert db_session.query(Review).one().likes_count == 0
