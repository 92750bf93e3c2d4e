from .crud_book import search_books, get_book_by_id, get_book_by_isbn, get_ids_by_isbn
from .crud_profile import ensure_profile, get_nicknames
from .crud_library import get_entry, list_library, add_to_library, update_status, remove_from_library
from .crud_review import (
    create_review,
    get_review_by_id,
    get_reviews_for_book,
    get_liked_review_ids,
    update_review,
    delete_review,
    toggle_review_like,
    get_review_feed,
)
from .crud_quote import (
    create_quote,
    get_quote_by_id,
    get_quotes_for_book,
    get_recent_quotes,
    get_random_quote,
    get_liked_quotes,
    count_quote_likes,
    count_quote_comments,
    get_liked_quote_ids,
    delete_quote,
    toggle_quote_like,
    get_comments,
    create_comment,
    delete_comment,
)
from .crud_goal import get_goal, set_goal

__all__ = [
    "search_books",
    "get_book_by_id",
    "get_book_by_isbn",
    "get_ids_by_isbn",
    "ensure_profile",
    "get_nicknames",
    "get_entry",
    "list_library",
    "add_to_library",
    "update_status",
    "remove_from_library",
    "create_review",
    "get_review_by_id",
    "get_reviews_for_book",
    "get_liked_review_ids",
    "update_review",
    "delete_review",
    "toggle_review_like",
    "get_review_feed",
    "create_quote",
    "get_quote_by_id",
    "get_quotes_for_book",
    "get_recent_quotes",
    "get_random_quote",
    "get_liked_quotes",
    "count_quote_likes",
    "count_quote_comments",
    "get_liked_quote_ids",
    "delete_quote",
    "toggle_quote_like",
    "get_comments",
    "create_comment",
    "delete_comment",
    "get_goal",
    "set_goal",
]
