import logging

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from readingnook.api.deps import get_db
from readingnook.clients.aladin import CatalogGateway, get_catalog
from readingnook.core.errors import NotFound
from readingnook.crud import get_book_by_id
from readingnook.schemas.book import BookSchema
from readingnook.services.reconcile import ingest_feed, search_and_reconcile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])


@router.get("/search")
async def search(
    q: str = Query(""),
    db: Session = Depends(get_db),
    catalog: CatalogGateway = Depends(get_catalog),
):
    books = await search_and_reconcile(db, q, catalog.search)
    return {"books": books}


@router.get("/bestsellers")
async def bestsellers(db: Session = Depends(get_db), catalog: CatalogGateway = Depends(get_catalog)):
    books = await run_in_threadpool(ingest_feed, db, await catalog.bestsellers())
    return {"books": [book.model_dump(by_alias=True) for book in books]}


@router.get("/new")
async def new_arrivals(db: Session = Depends(get_db), catalog: CatalogGateway = Depends(get_catalog)):
    books = await run_in_threadpool(ingest_feed, db, await catalog.new_arrivals())
    return {"books": [book.model_dump(by_alias=True) for book in books]}


@router.get("/{book_id}")
def read_book(book_id: int, db: Session = Depends(get_db)):
    book = get_book_by_id(db, book_id)
    if book is None:
        logger.info(f"Book {book_id} not found.")
        raise NotFound("Book not found")
    return BookSchema.model_validate(book).model_dump()
