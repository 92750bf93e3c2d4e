# tests/services/test_reconcile.py
import asyncio
import threading

import pytest

from readingnook.core.errors import ConfigurationError, UpstreamUnavailable
from readingnook.models.book import Book
from readingnook.schemas.book import CatalogBook
from readingnook.services import reconcile as reconcile_module
from readingnook.services.reconcile import (
    attach_ids,
    ingest_feed,
    normalize_title,
    plan_reconciliation,
    reconcile,
    search_and_reconcile,
)

DEMIAN_ISBN = "9788937460449"


def catalog_book(title, isbn=None, **fields):
    return CatalogBook(title=title, isbn=isbn, **fields)


def demian_results():
    return [
        catalog_book("데미안", DEMIAN_ISBN, author="헤르만 헤세", publisher="민음사", cover="https://img/demian.jpg"),
        catalog_book("데미안 (양장본)", "9791130000001", author="헤르만 헤세", publisher="문예출판사"),
        catalog_book("데미안 - 청소년판", "9791130000002", author="헤르만 헤세", publisher="책세상"),
    ]


def fetcher_returning(records):
    async def fetch(query):
        return list(records)
    return fetch


def test_normalize_title():
    assert normalize_title("  The  Little\tPrince ") == "thelittleprince"
    assert normalize_title("데 미 안") == "데미안"
    assert normalize_title(None) == ""


def test_plan_matches_by_isbn_before_title():
    local = Book(id=1, title="Completely Different", isbn="111")
    plan = plan_reconciliation([local], [catalog_book("New Title", "111", author="A")])

    assert plan.updates == [{
        "id": 1, "title": "New Title", "author": "A", "publisher": None,
        "category": None, "cover": None, "description": None, "isbn": "111",
    }]
    assert plan.inserts == []
    assert plan.title_matches == {}


def test_plan_title_match_adopts_external_isbn_and_keeps_local_values():
    local = Book(id=7, title="데 미 안", author="헤세", description="local blurb")
    plan = plan_reconciliation([local], [catalog_book("데미안", "222", publisher="민음사")])

    (row,) = plan.updates
    assert row["isbn"] == "222"
    assert row["title"] == "데미안"
    assert row["author"] == "헤세"
    assert row["description"] == "local blurb"
    assert row["publisher"] == "민음사"
    assert plan.title_matches == {0: 7}


def test_plan_first_external_record_wins_on_title_collision():
    local = Book(id=3, title="Demian")
    plan = plan_reconciliation([local], [catalog_book("Demian", "A1"), catalog_book("demian", "B2")])

    assert plan.updates[0]["isbn"] == "A1"


def test_plan_two_isbnless_rows_do_not_adopt_same_isbn():
    locals_ = [Book(id=1, title="Demian"), Book(id=2, title="DEMIAN")]
    plan = plan_reconciliation(locals_, [catalog_book("Demian", "A1")])

    assert [row["isbn"] for row in plan.updates] == ["A1", None]


def test_plan_inserts_are_deduplicated_and_skip_isbnless():
    plan = plan_reconciliation([], [
        catalog_book("One", "1"), catalog_book("One again", "1"), catalog_book("No ISBN"),
    ])
    assert [row["isbn"] for row in plan.inserts] == ["1"]


def test_reconcile_updates_and_inserts(db_session, make_book):
    existing = make_book(title="데미안", isbn=DEMIAN_ISBN, description="keep me")

    result = reconcile(db_session, [existing], demian_results())

    assert result.updated_count == 1
    assert result.inserted_count == 2
    assert result.updated_ids[DEMIAN_ISBN] == existing.id
    assert db_session.query(Book).count() == 3
    db_session.expire_all()
    stored = db_session.get(Book, existing.id)
    assert stored.publisher == "민음사"
    assert stored.description == "keep me"


def test_reconcile_is_idempotent(db_session, make_book):
    existing = make_book(title="데미안", isbn=DEMIAN_ISBN)
    first = reconcile(db_session, [existing], demian_results())
    count_after_first = db_session.query(Book).count()

    rows = db_session.query(Book).all()
    second = reconcile(db_session, rows, demian_results())

    assert db_session.query(Book).count() == count_after_first == 3
    assert second.updated_ids == first.updated_ids


def test_reconcile_isbnless_row_does_not_steal_taken_isbn(db_session, make_book):
    holder = make_book(title="Demian (Penguin)", isbn="A1")
    orphan = make_book(title="Demian")

    # Only the ISBN-less row is a local candidate; A1 is held by another row.
    reconcile(db_session, [orphan], [catalog_book("Demian", "A1")])

    db_session.expire_all()
    assert db_session.get(Book, orphan.id).isbn is None
    assert db_session.get(Book, holder.id).isbn == "A1"
    assert db_session.query(Book).count() == 2


def test_plan_isbnless_row_does_not_adopt_isbn_of_another_candidate():
    orphan = Book(id=1, title="데미안", isbn=None)
    holder = Book(id=2, title="데미안 특별판", isbn=DEMIAN_ISBN)

    plan = plan_reconciliation([orphan, holder], [catalog_book("데미안", DEMIAN_ISBN)])

    isbns = {row["id"]: row["isbn"] for row in plan.updates}
    assert isbns == {1: None, 2: DEMIAN_ISBN}
    assert plan.inserts == []


def test_search_with_isbnless_row_and_isbn_holder_in_same_batch(db_session, make_book):
    orphan = make_book(title="데미안")
    holder = make_book(title="데미안 특별판", isbn=DEMIAN_ISBN)

    books = asyncio.run(
        search_and_reconcile(db_session, "데미안", fetcher_returning([catalog_book("데미안", DEMIAN_ISBN)]))
    )

    assert {book["id"] for book in books} == {orphan.id, holder.id}
    db_session.expire_all()
    assert db_session.get(Book, orphan.id).isbn is None
    assert db_session.get(Book, holder.id).isbn == DEMIAN_ISBN
    assert db_session.query(Book).count() == 2


def test_attach_ids_uses_title_matches_for_isbnless_records():
    records = [catalog_book("With ISBN", "1"), catalog_book("Without")]
    attached = attach_ids(records, {"1": 10}, {1: 20})

    assert [r.id for r in attached] == [10, 20]
    assert records[0].id is None


def test_ingest_feed(db_session, make_book):
    existing = make_book(title="Old title", isbn="1", description="kept")
    feed = [
        catalog_book("New title", "1", rank=1),
        catalog_book("Second", "2", rank=2),
        catalog_book("No isbn", rank=3),
    ]

    stored = ingest_feed(db_session, feed)

    assert [b.id for b in stored][0] == existing.id
    assert stored[1].id is not None
    assert stored[2].id is None
    assert [b.rank for b in stored] == [1, 2, 3]
    db_session.expire_all()
    assert db_session.get(Book, existing.id).title == "New title"
    assert db_session.get(Book, existing.id).description == "kept"


def test_search_and_reconcile_demian_scenario(db_session, make_book):
    existing = make_book(title="데미안", isbn=DEMIAN_ISBN)

    books = asyncio.run(search_and_reconcile(db_session, "데미안", fetcher_returning(demian_results())))

    assert len(books) == 3
    assert all(book["id"] is not None for book in books)
    assert books[0]["id"] == existing.id
    assert len({book["id"] for book in books}) == 3
    assert db_session.query(Book).count() == 3


def test_search_and_reconcile_appends_unmatched_local_rows(db_session, make_book):
    local_only = make_book(title="데미안 해설서", isbn="999")

    books = asyncio.run(search_and_reconcile(db_session, "데미안", fetcher_returning(demian_results()[:1])))

    assert [book["id"] for book in books][-1] == local_only.id
    assert len(books) == 2


def test_search_and_reconcile_blank_query(db_session):
    async def never_called(query):
        raise AssertionError("catalog should not be called")

    assert asyncio.run(search_and_reconcile(db_session, "   ", never_called)) == []


def test_search_and_reconcile_falls_back_to_local_rows(db_session, make_book):
    existing = make_book(title="데미안", isbn=DEMIAN_ISBN)

    async def unavailable(query):
        raise UpstreamUnavailable("down")

    books = asyncio.run(search_and_reconcile(db_session, "데미안", unavailable))

    assert [book["id"] for book in books] == [existing.id]


def test_search_and_reconcile_propagates_configuration_errors(db_session):
    async def unconfigured(query):
        raise ConfigurationError("no key")

    with pytest.raises(ConfigurationError):
        asyncio.run(search_and_reconcile(db_session, "데미안", unconfigured))


def test_search_and_reconcile_runs_database_work_off_the_event_loop(db_session, make_book, monkeypatch):
    make_book(title="데미안", isbn=DEMIAN_ISBN)
    threads = {}
    real_search_books = reconcile_module.search_books

    def recording_search_books(*args, **kwargs):
        threads["db"] = threading.get_ident()
        return real_search_books(*args, **kwargs)

    async def fetch(query):
        threads["loop"] = threading.get_ident()
        return demian_results()

    monkeypatch.setattr(reconcile_module, "search_books", recording_search_books)
    books = asyncio.run(search_and_reconcile(db_session, "데미안", fetch))

    assert len(books) == 3
    assert threads["db"] != threads["loop"]
