"""
ORM model for user profiles.
A profile row is created lazily the first time a user writes a review, quote,
comment or like, so that those rows can reference it.
"""

import datetime
from sqlalchemy import Column, String, DateTime, func
from readingnook.db.session import Base

class Profile(Base):
    """
    Public profile of a user.

    Attributes:
        id (str): User id issued by the authentication provider.
        nickname (str): Display name shown next to reviews, quotes and rankings.
        created_at (datetime): Creation timestamp.
    """
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    nickname = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.now, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Profile(id='{self.id}', nickname='{self.nickname}')>"
