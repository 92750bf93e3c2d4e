"""
Catalog reconciliation: merges external catalog records into the local books table.

Matching runs by ISBN first and by normalized title (whitespace removed,
lower-cased) second. Title matching is approximate on purpose; it keeps books
already known under a near-identical title from being duplicated when the
upstream ISBN is unreliable, at the cost of possible false matches on generic
titles. When several external records share a normalized title, the first one
wins.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from readingnook.core.config import settings
from readingnook.core.errors import StoreError, UpstreamUnavailable
from readingnook.crud.crud_book import get_books_by_ids, get_ids_by_isbn, search_books
from readingnook.db.upsert import upsert
from readingnook.models.book import Book
from readingnook.schemas.book import BookSchema, CatalogBook

logger = logging.getLogger(__name__)

MERGED_FIELDS = ("title", "author", "publisher", "category", "cover", "description")
STORE_FIELDS = MERGED_FIELDS + ("isbn",)

_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: Optional[str]) -> str:
    if not title:
        return ""
    return _WHITESPACE.sub("", title).lower()


@dataclass
class ReconciliationPlan:
    """Writes decided by plan_reconciliation, not yet applied."""
    updates: List[Dict] = field(default_factory=list)
    inserts: List[Dict] = field(default_factory=list)
    # position in the external list -> local id matched by title
    title_matches: Dict[int, int] = field(default_factory=dict)


@dataclass
class ReconciliationResult:
    updated_ids: Dict[str, int] = field(default_factory=dict)
    inserted_count: int = 0
    updated_count: int = 0
    title_matches: Dict[int, int] = field(default_factory=dict)


def _merge(local: Book, external: CatalogBook) -> Dict:
    row = {"id": local.id}
    for name in MERGED_FIELDS:
        external_value = getattr(external, name)
        row[name] = external_value if external_value is not None else getattr(local, name)
    row["isbn"] = local.isbn or external.isbn
    return row


def plan_reconciliation(existing: Sequence[Book], external: Sequence[CatalogBook]) -> ReconciliationPlan:
    """
    Decides which local rows to update and which external records to insert.

    Args:
        existing (Sequence[Book]): Local rows that are candidates for a match.
        external (Sequence[CatalogBook]): Normalized catalog records.

    Returns:
        ReconciliationPlan: Updates keyed by primary key, inserts keyed by ISBN.
    """
    by_isbn: Dict[str, CatalogBook] = {}
    by_title: Dict[str, int] = {}
    for position, record in enumerate(external):
        if record.isbn and record.isbn not in by_isbn:
            by_isbn[record.isbn] = record
        key = normalize_title(record.title)
        if key and key not in by_title:
            by_title[key] = position

    plan = ReconciliationPlan()
    local_isbns = {local.isbn for local in existing if local.isbn}
    # ISBNs already held by a candidate row count as taken.
    adopted_isbns = set(local_isbns)
    for local in existing:
        match = by_isbn.get(local.isbn) if local.isbn else None
        if match is None:
            position = by_title.get(normalize_title(local.title))
            if position is None:
                continue
            match = external[position]
            plan.title_matches[position] = local.id

        row = _merge(local, match)
        if not local.isbn and row["isbn"]:
            # An ISBN-less row never claims an ISBN another row holds or adopted.
            if row["isbn"] in adopted_isbns:
                row["isbn"] = None
            else:
                adopted_isbns.add(row["isbn"])
        plan.updates.append(row)

    queued = set()
    for record in external:
        if not record.isbn or record.isbn in local_isbns or record.isbn in queued:
            continue
        queued.add(record.isbn)
        plan.inserts.append(record.store_fields())

    return plan


def _upsert_by_isbn(db: Session, rows: List[Dict]) -> None:
    upsert(
        db,
        Book,
        rows,
        conflict_columns=["isbn"],
        update_columns=MERGED_FIELDS,
        keep_existing_when_null=True,
    )


def _release_taken_isbns(db: Session, updates: List[Dict]) -> None:
    """Drops the ISBN from every update that would adopt one another row already holds."""
    wanted = {row["isbn"] for row in updates if row.get("isbn")}
    if not wanted:
        return
    holders = dict(db.execute(select(Book.isbn, Book.id).where(Book.isbn.in_(list(wanted)))).all())
    for row in updates:
        holder_id = holders.get(row.get("isbn"))
        if holder_id is not None and holder_id != row["id"]:
            logger.info(f"ISBN {row['isbn']} already belongs to book {holder_id}; book {row['id']} keeps no ISBN.")
            row["isbn"] = None


def reconcile(db: Session, existing: Sequence[Book], external: Sequence[CatalogBook]) -> ReconciliationResult:
    """
    Applies the reconciliation plan: updates by primary key first, then inserts
    with upsert-by-ISBN, then re-reads the ISBN -> id map for every requested ISBN.

    Args:
        db (Session): SQLAlchemy session.
        existing (Sequence[Book]): Local candidate rows.
        external (Sequence[CatalogBook]): Normalized catalog records.

    Returns:
        ReconciliationResult: ISBN -> id map and write counts.

    Raises:
        StoreError: If any write fails; the transaction is rolled back.
    """
    plan = plan_reconciliation(existing, external)
    requested_isbns = [record.isbn for record in external if record.isbn]

    try:
        if plan.updates:
            _release_taken_isbns(db, plan.updates)
            db.execute(update(Book), plan.updates)
        _upsert_by_isbn(db, plan.inserts)
        db.commit()
    except SQLAlchemyError as e:
        logger.exception(f"Error committing catalog reconciliation: {e}")
        db.rollback()
        raise StoreError("검색 중 오류가 발생했습니다.") from e

    result = ReconciliationResult(
        updated_ids=get_ids_by_isbn(db, requested_isbns),
        inserted_count=len(plan.inserts),
        updated_count=len(plan.updates),
        title_matches=dict(plan.title_matches),
    )
    logger.info(
        f"Reconciled {len(external)} catalog records: "
        f"{result.updated_count} updated, {result.inserted_count} inserted."
    )
    return result


def attach_ids(
    external: Sequence[CatalogBook],
    updated_ids: Dict[str, int],
    title_matches: Optional[Dict[int, int]] = None,
) -> List[CatalogBook]:
    """
    Returns copies of `external` carrying their local id (None when there is none).
    """
    title_matches = title_matches or {}
    attached = []
    for position, record in enumerate(external):
        book_id = updated_ids.get(record.isbn) if record.isbn else None
        if book_id is None:
            book_id = title_matches.get(position)
        attached.append(record.model_copy(update={"id": book_id}))
    return attached


def ingest_feed(db: Session, external: Sequence[CatalogBook]) -> List[CatalogBook]:
    """
    Stores a bestseller or new-arrival list: every record with an ISBN is upserted
    on ISBN (catalog values win where present) and the list comes back with ids.

    Raises:
        StoreError: If the upsert fails.
    """
    rows, seen = [], set()
    for record in external:
        if record.isbn and record.isbn not in seen:
            seen.add(record.isbn)
            rows.append(record.store_fields())

    try:
        _upsert_by_isbn(db, rows)
        db.commit()
    except SQLAlchemyError as e:
        logger.exception(f"Error upserting catalog feed: {e}")
        db.rollback()
        raise StoreError() from e

    ids = get_ids_by_isbn(db, seen)
    logger.info(f"Ingested catalog feed: {len(rows)} of {len(external)} records have an ISBN.")
    return attach_ids(external, ids)


CatalogFetcher = Callable[[str], Awaitable[List[CatalogBook]]]


def _as_dict(book: Book) -> Dict:
    return BookSchema.model_validate(book).model_dump()


def _merge_search_results(db: Session, existing: Sequence[Book], external: Sequence[CatalogBook]) -> List[Dict]:
    result = reconcile(db, existing, external)
    records = attach_ids(external, result.updated_ids, result.title_matches)
    stored = get_books_by_ids(db, [record.id for record in records])

    books, seen_ids = [], set()
    for record in records:
        if record.id is None:
            books.append(record.model_dump(include=set(STORE_FIELDS) | {"id"}))
            continue
        if record.id in seen_ids:
            continue
        seen_ids.add(record.id)
        books.append(_as_dict(stored[record.id]))

    for local in existing:
        if local.id not in seen_ids:
            seen_ids.add(local.id)
            books.append(_as_dict(local))
    return books


async def search_and_reconcile(db: Session, query: str, fetcher: CatalogFetcher) -> List[Dict]:
    """
    Catalog search with local reconciliation.

    Loads local matches, asks the catalog, reconciles, and returns the reconciled
    catalog records (as stored locally) followed by local matches the catalog did
    not return. If the catalog is unavailable the local matches are returned as-is.
    Database work runs in the threadpool; only the catalog call is awaited on the loop.

    Args:
        db (Session): SQLAlchemy session.
        query (str): Search keyword.
        fetcher: Coroutine function taking the query and returning catalog records.

    Returns:
        List[Dict]: Book dictionaries; `id` is None only for records without a local row.
    """
    query = (query or "").strip()
    if not query:
        return []

    try:
        existing = await run_in_threadpool(search_books, db, query, limit=settings.LOCAL_SEARCH_LIMIT)
    except SQLAlchemyError as e:
        logger.exception(f"Error searching local books for '{query}': {e}")
        raise StoreError("검색 중 오류가 발생했습니다.") from e

    try:
        external = await fetcher(query)
    except UpstreamUnavailable:
        logger.warning(f"Catalog unavailable for '{query}'; returning {len(existing)} local matches.")
        return [_as_dict(book) for book in existing]

    return await run_in_threadpool(_merge_search_results, db, existing, external)
