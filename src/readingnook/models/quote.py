"""
ORM models for quotes and their social events (likes and comments).
Like and comment counts are not stored on the quote; they are counted on read.
"""

import datetime
from sqlalchemy import (Column, Integer, String, Text, ForeignKey, DateTime,
                        func, UniqueConstraint)
from sqlalchemy.orm import relationship
from readingnook.db.session import Base


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    page = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.now, server_default=func.now(), nullable=False, index=True)

    book = relationship("Book", back_populates="quotes")
    profile = relationship("Profile")
    likes = relationship("QuoteLike", back_populates="quote", cascade="all, delete-orphan")
    comments = relationship("QuoteComment", back_populates="quote", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Quote(id={self.id}, book_id={self.book_id}, user_id='{self.user_id}')>"


class QuoteLike(Base):
    __tablename__ = "quote_likes"

    id = Column(Integer, primary_key=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.datetime.now, server_default=func.now(), nullable=False, index=True)

    quote = relationship("Quote", back_populates="likes")

    __table_args__ = (
        UniqueConstraint('quote_id', 'user_id', name='uq_quote_like_user'),
    )

    def __repr__(self):
        return f"<QuoteLike(quote_id={self.quote_id}, user_id='{self.user_id}')>"


class QuoteComment(Base):
    __tablename__ = "quote_comments"

    id = Column(Integer, primary_key=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.now, server_default=func.now(), nullable=False, index=True)

    quote = relationship("Quote", back_populates="comments")
    profile = relationship("Profile")

    def __repr__(self):
        return f"<QuoteComment(id={self.id}, quote_id={self.quote_id}, user_id='{self.user_id}')>"
