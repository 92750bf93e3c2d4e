"""
SQLAlchemy session management for ReadingNook.
Creates the engine, the session factory and the declarative base for the ORM models.
Provides a dependency that opens and safely closes a database session.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from readingnook.core.config import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    """
    Provides a database session for use as a dependency (e.g. in FastAPI).

    Yields:
        Session: SQLAlchemy database session.

    Ensures:
        The session is closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
