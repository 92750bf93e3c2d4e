# tests/crud/test_crud_review.py
import pytest
from pydantic import ValidationError

from readingnook.core.errors import Forbidden, NotFound, Unauthenticated
from readingnook.crud import (
    create_review,
    delete_review,
    get_liked_review_ids,
    get_review_by_id,
    get_review_feed,
    get_reviews_for_book,
    toggle_review_like,
    update_review,
)
from readingnook.models.profile import Profile
from readingnook.models.review import Review, ReviewLike
from readingnook.schemas.review import ReviewCreate, ReviewUpdate


@pytest.fixture
def crud_test_book(make_book):
    return make_book(title="CRUD Review Test Book", isbn="5556667778889")


def test_create_review_crud(db_session, actor, crud_test_book):
    """Test the create_review CRUD function."""
    review_in = ReviewCreate(bookId=crud_test_book.id, rating=5, content="  Excellent book!  ")

    created_review = create_review(db_session, review_in, actor)

    assert created_review.id is not None
    assert created_review.rating == 5
    assert created_review.content == "Excellent book!"
    assert created_review.user_id == actor.user_id
    assert created_review.likes_count == 0


def test_create_review_creates_profile_first(db_session, actor, crud_test_book):
    create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=4, content="ok"), actor)

    profile = db_session.get(Profile, actor.user_id)
    assert profile is not None
    assert profile.nickname == "책벌레"


def test_create_review_requires_actor(db_session, crud_test_book):
    with pytest.raises(Unauthenticated):
        create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=4, content="ok"), None)
    assert db_session.query(Review).count() == 0


def test_create_review_unknown_book(db_session, actor):
    with pytest.raises(NotFound):
        create_review(db_session, ReviewCreate(bookId=999, rating=4, content="ok"), actor)


@pytest.mark.parametrize("payload", [
    {"bookId": 1, "rating": 0, "content": "too low"},
    {"bookId": 1, "rating": 6, "content": "too high"},
    {"bookId": 1, "rating": 3, "content": "   "},
])
def test_review_create_schema_rejects_invalid_input(payload):
    with pytest.raises(ValidationError):
        ReviewCreate(**payload)


def test_get_reviews_for_book_newest_first(db_session, actor, crud_test_book):
    first = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=3, content="first"), actor)
    second = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=4, content="second"), actor)

    reviews = get_reviews_for_book(db_session, crud_test_book.id)

    assert [r.id for r in reviews] == [second.id, first.id]


def test_update_review_by_owner(db_session, actor, crud_test_book):
    review = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=3, content="meh"), actor)

    updated = update_review(db_session, ReviewUpdate(reviewId=review.id, rating=5, content="loved it"), actor)

    assert updated.rating == 5
    assert updated.content == "loved it"
    assert updated.updated_at is not None


def test_update_review_by_other_user_is_forbidden(db_session, actor, other_actor, crud_test_book):
    review = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=3, content="mine"), actor)

    with pytest.raises(Forbidden):
        update_review(db_session, ReviewUpdate(reviewId=review.id, rating=1, content="hijack"), other_actor)

    db_session.expire_all()
    assert get_review_by_id(db_session, review.id).content == "mine"


def test_update_missing_review(db_session, actor):
    with pytest.raises(NotFound):
        update_review(db_session, ReviewUpdate(reviewId=42, rating=1, content="ghost"), actor)


def test_delete_review_removes_likes(db_session, actor, other_actor, crud_test_book):
    review = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=5, content="great"), actor)
    toggle_review_like(db_session, review.id, other_actor)
    assert db_session.query(ReviewLike).count() == 1

    delete_review(db_session, review.id, actor)

    assert get_review_by_id(db_session, review.id) is None
    assert db_session.query(ReviewLike).count() == 0


def test_delete_review_by_other_user_is_forbidden(db_session, actor, other_actor, crud_test_book):
    review = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=5, content="great"), actor)

    with pytest.raises(Forbidden):
        delete_review(db_session, review.id, other_actor)
    assert get_review_by_id(db_session, review.id) is not None


def test_toggle_review_like_twice_restores_state(db_session, actor, other_actor, crud_test_book):
    review = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=5, content="great"), actor)

    first = toggle_review_like(db_session, review.id, other_actor)
    assert first.liked is True
    assert first.count == 1
    db_session.expire_all()
    assert get_review_by_id(db_session, review.id).likes_count == 1
    assert get_liked_review_ids(db_session, [review.id], other_actor.user_id) == {review.id}

    second = toggle_review_like(db_session, review.id, other_actor)
    assert second.liked is False
    assert second.count == 0
    db_session.expire_all()
    assert get_review_by_id(db_session, review.id).likes_count == 0
    assert get_liked_review_ids(db_session, [review.id], other_actor.user_id) == set()


def test_toggle_review_like_creates_liker_profile(db_session, actor, other_actor, crud_test_book):
    review = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=5, content="great"), actor)

    toggle_review_like(db_session, review.id, other_actor)

    # No nickname or name: the email is used.
    assert db_session.get(Profile, other_actor.user_id).nickname == "reader2@example.com"


def test_toggle_review_like_unknown_review(db_session, actor):
    with pytest.raises(NotFound):
        toggle_review_like(db_session, 12345, actor)


def test_review_feed(db_session, actor, other_actor, crud_test_book):
    liked = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=5, content="liked"), actor)
    plain = create_review(db_session, ReviewCreate(bookId=crud_test_book.id, rating=2, content="plain"), actor)
    toggle_review_like(db_session, liked.id, other_actor)

    latest, top_liked = get_review_feed(db_session)

    assert [review.id for review, _ in latest] == [plain.id, liked.id]
    assert [review.id for review, _ in top_liked] == [liked.id]
    assert latest[0][1] == "책벌레"
    assert latest[0][0].book.title == "CRUD Review Test Book"
