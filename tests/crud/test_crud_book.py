# tests/crud/test_crud_book.py
from readingnook.crud import get_book_by_isbn, get_ids_by_isbn, search_books
from readingnook.crud.crud_book import get_books_by_ids


def test_search_books_matches_any_text_column(db_session, make_book):
    demian = make_book(title="데미안", author="헤르만 헤세", publisher="민음사", isbn="9788937460449")
    make_book(title="수레바퀴 아래서", author="헤르만 헤세", publisher="문학동네", isbn="9788954600000")
    make_book(title="Unrelated", author="Someone", publisher="Other", category="소설")

    assert [b.id for b in search_books(db_session, "데미")] == [demian.id]
    assert len(search_books(db_session, "헤세")) == 2
    assert len(search_books(db_session, "민음")) == 1
    assert len(search_books(db_session, "소설")) == 1


def test_search_books_is_case_insensitive(db_session, make_book):
    make_book(title="Python Tricks")
    assert len(search_books(db_session, "python")) == 1


def test_search_books_respects_limit(db_session, make_book):
    for i in range(5):
        make_book(title=f"Series {i}")
    assert len(search_books(db_session, "Series", limit=3)) == 3


def test_isbn_lookups(db_session, make_book):
    a = make_book(title="A", isbn="111")
    b = make_book(title="B", isbn="222")
    make_book(title="C")

    assert get_book_by_isbn(db_session, "111").id == a.id
    assert get_book_by_isbn(db_session, "999") is None
    assert get_ids_by_isbn(db_session, ["111", "222", "999"]) == {"111": a.id, "222": b.id}
    assert get_ids_by_isbn(db_session, []) == {}
    assert set(get_books_by_ids(db_session, [a.id, b.id])) == {a.id, b.id}
