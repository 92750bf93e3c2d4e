# src/readingnook/models/review.py
import datetime
from sqlalchemy import (Column, Integer, String, Text, ForeignKey, DateTime,
                        func, CheckConstraint, UniqueConstraint)
from sqlalchemy.orm import relationship
from readingnook.db.session import Base

class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    rating = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    # Cached projection of count(review_likes); recomputed on every toggle.
    likes_count = Column(Integer, nullable=False, default=0, server_default='0')
    created_at = Column(DateTime, default=datetime.datetime.now, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, nullable=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id"), nullable=False, index=True)

    book = relationship("Book", back_populates="reviews")
    profile = relationship("Profile")
    likes = relationship("ReviewLike", back_populates="review", cascade="all, delete-orphan")

    __table_args__ = (
        # Ensure rating is between 1 and 5
        CheckConstraint('rating >= 1 AND rating <= 5', name='review_rating_check'),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, book_id={self.book_id}, user_id='{self.user_id}', rating={self.rating})>"


class ReviewLike(Base):
    __tablename__ = "review_likes"

    id = Column(Integer, primary_key=True)
    review_id = Column(Integer, ForeignKey("reviews.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.datetime.now, server_default=func.now(), nullable=False)

    review = relationship("Review", back_populates="likes")

    __table_args__ = (
        # One like per user and review
        UniqueConstraint('review_id', 'user_id', name='uq_review_like_user'),
    )

    def __repr__(self):
        return f"<ReviewLike(review_id={self.review_id}, user_id='{self.user_id}')>"
