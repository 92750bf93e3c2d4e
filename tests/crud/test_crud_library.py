# tests/crud/test_crud_library.py
import datetime

import pytest

from readingnook.core.errors import NotFound, Unauthenticated
from readingnook.crud import add_to_library, get_entry, list_library, remove_from_library, update_status
from readingnook.schemas.library import LibraryEntryCreate, LibraryEntryUpdate

DAY_ONE = datetime.date(2025, 3, 1)
DAY_TWO = datetime.date(2025, 3, 15)


def test_add_to_library_defaults_to_want(db_session, actor, make_book):
    book = make_book()

    entry = add_to_library(db_session, actor, LibraryEntryCreate(bookId=book.id))

    assert entry.status == "want"
    assert entry.started_at is None
    assert entry.finished_at is None


def test_add_to_library_is_an_upsert(db_session, actor, make_book):
    book = make_book()
    add_to_library(db_session, actor, LibraryEntryCreate(bookId=book.id))
    add_to_library(db_session, actor, LibraryEntryCreate(bookId=book.id, status="reading"), today=DAY_ONE)

    entries = list_library(db_session, actor.user_id)
    assert len(entries) == 1
    assert entries[0].status == "reading"
    assert entries[0].started_at == DAY_ONE


def test_add_to_library_with_explicit_dates(db_session, actor, make_book):
    book = make_book()
    entry = add_to_library(
        db_session,
        actor,
        LibraryEntryCreate(bookId=book.id, status="finished", startedAt="2025-01-02", finishedAt="2025-01-20"),
        today=DAY_TWO,
    )

    assert entry.started_at == datetime.date(2025, 1, 2)
    assert entry.finished_at == datetime.date(2025, 1, 20)


def test_add_to_library_unknown_book(db_session, actor):
    with pytest.raises(NotFound):
        add_to_library(db_session, actor, LibraryEntryCreate(bookId=77))


def test_add_to_library_requires_actor(db_session, make_book):
    book = make_book()
    with pytest.raises(Unauthenticated):
        add_to_library(db_session, None, LibraryEntryCreate(bookId=book.id))


def test_status_lifecycle(db_session, actor, make_book):
    book = make_book()
    add_to_library(db_session, actor, LibraryEntryCreate(bookId=book.id))

    entry, change = update_status(db_session, actor, LibraryEntryUpdate(bookId=book.id, status="reading"), today=DAY_ONE)
    assert (entry.started_at, entry.finished_at) == (DAY_ONE, None)

    # A second 'reading' keeps the original start date.
    entry, _ = update_status(db_session, actor, LibraryEntryUpdate(bookId=book.id, status="reading"), today=DAY_TWO)
    assert entry.started_at == DAY_ONE

    entry, change = update_status(
        db_session, actor, LibraryEntryUpdate(bookId=book.id, status="finished", emotionTag="감동"), today=DAY_TWO
    )
    assert (entry.started_at, entry.finished_at) == (DAY_ONE, DAY_TWO)
    assert entry.emotion_tag == "감동"
    assert change.status == "finished"

    entry, _ = update_status(db_session, actor, LibraryEntryUpdate(bookId=book.id, status="want"), today=DAY_TWO)
    assert (entry.started_at, entry.finished_at) == (None, None)
    # Tag not sent: kept.
    assert entry.emotion_tag == "감동"


def test_empty_emotion_tag_clears_it(db_session, actor, make_book):
    book = make_book()
    add_to_library(db_session, actor, LibraryEntryCreate(bookId=book.id, emotionTag="슬픔"))

    entry, _ = update_status(db_session, actor, LibraryEntryUpdate(bookId=book.id, status="reading", emotionTag=""))

    assert entry.emotion_tag is None


def test_update_status_book_not_in_library(db_session, actor, make_book):
    book = make_book()
    with pytest.raises(NotFound):
        update_status(db_session, actor, LibraryEntryUpdate(bookId=book.id, status="reading"))


def test_libraries_are_per_user(db_session, actor, other_actor, make_book):
    book = make_book()
    add_to_library(db_session, actor, LibraryEntryCreate(bookId=book.id))

    assert get_entry(db_session, other_actor.user_id, book.id) is None
    assert list_library(db_session, other_actor.user_id) == []


def test_remove_from_library(db_session, actor, make_book):
    book = make_book()
    add_to_library(db_session, actor, LibraryEntryCreate(bookId=book.id))

    assert remove_from_library(db_session, actor, book.id) is True
    assert get_entry(db_session, actor.user_id, book.id) is None
    assert remove_from_library(db_session, actor, book.id) is False
