import datetime
from sqlalchemy import (Column, Integer, String, Date, DateTime, ForeignKey,
                        func, CheckConstraint, UniqueConstraint)
from sqlalchemy.orm import relationship
from readingnook.db.session import Base

READING_STATUSES = ("want", "reading", "finished")


class LibraryEntry(Base):
    """A user's tracking record for one book (status, dates, emotion tag)."""
    __tablename__ = "user_books"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="want", server_default="want", index=True)
    started_at = Column(Date, nullable=True)
    finished_at = Column(Date, nullable=True, index=True)
    emotion_tag = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.now, server_default=func.now(), nullable=False)

    book = relationship("Book", back_populates="library_entries")

    __table_args__ = (
        CheckConstraint("status IN ('want', 'reading', 'finished')", name='user_books_status_check'),
        UniqueConstraint('user_id', 'book_id', name='uq_user_book'),
    )

    def __repr__(self):
        return f"<LibraryEntry(user_id='{self.user_id}', book_id={self.book_id}, status='{self.status}')>"
