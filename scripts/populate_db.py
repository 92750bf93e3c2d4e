"""
Script to seed the ReadingNook database with books from the Aladin catalog.

Reads the bestseller and new-arrival lists through the catalog gateway and
stores them with the same reconciliation used by the live endpoints, so running
it twice does not duplicate rows.

Usage:
    python scripts/populate_db.py

Note:
    - Requires ALADIN_TTB_KEY in the environment or in .env.
    - A feed that fails is logged and skipped; the others are still stored.
"""

import asyncio
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

import readingnook.models  # noqa: F401
from readingnook.clients.aladin import fetch_bestsellers, fetch_new_arrivals
from readingnook.core.errors import ReadingNookError
from readingnook.db.session import Base, SessionLocal, engine
from readingnook.schemas.book import CatalogBook
from readingnook.services.reconcile import ingest_feed

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

FEEDS = [
    ("bestsellers", fetch_bestsellers),
    ("new arrivals", fetch_new_arrivals),
]


def populate_books(db: Session, feeds=FEEDS) -> int:
    """
    Fetches every feed and ingests it into the books table.

    Args:
        db (Session): Active SQLAlchemy session.
        feeds: (name, coroutine function) pairs returning CatalogBook lists.

    Returns:
        int: Number of feed items that ended up with a local id.
    """
    logger.info("--- Starting book population ---")
    total_stored = 0

    for name, fetch in feeds:
        logger.info(f"Fetching {name}...")
        try:
            books: List[CatalogBook] = asyncio.run(fetch())
            stored = ingest_feed(db, books)
        except ReadingNookError as e:
            logger.error(f"Skipping {name}: {e.message}")
            continue

        with_id = sum(1 for book in stored if book.id is not None)
        total_stored += with_id
        logger.info(f"Stored {with_id} of {len(books)} {name}.")

    logger.info(f"--- Book population finished: {total_stored} items stored. ---")
    return total_stored


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    db_session: Optional[Session] = None
    try:
        logger.info("Opening database session...")
        db_session = SessionLocal()
        populate_books(db_session)
    finally:
        if db_session:
            logger.info("Closing database session.")
            db_session.close()
