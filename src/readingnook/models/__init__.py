from .book import Book
from .profile import Profile
from .library import LibraryEntry, READING_STATUSES
from .review import Review, ReviewLike
from .quote import Quote, QuoteLike, QuoteComment
from .goal import MonthlyGoal

__all__ = [
    "Book",
    "Profile",
    "LibraryEntry",
    "READING_STATUSES",
    "Review",
    "ReviewLike",
    "Quote",
    "QuoteLike",
    "QuoteComment",
    "MonthlyGoal",
]
