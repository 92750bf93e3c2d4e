"""
Async client for the Aladin open API (TTB).
Searches the bookseller catalog and reads its bestseller and new-arrival lists,
normalizing every item into a CatalogBook so the rest of ReadingNook never sees
the upstream response shape.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from readingnook.core.config import settings
from readingnook.core.errors import ConfigurationError, InvalidArgument, UpstreamUnavailable
from readingnook.schemas.book import CatalogBook

logger = logging.getLogger(__name__)

KEYWORD = "keyword"
BESTSELLER = "bestseller"
NEW_ARRIVALS = "new-arrivals"

# mode -> (endpoint, QueryType)
CATALOG_MODES = {
    KEYWORD: ("ItemSearch.aspx", "Keyword"),
    BESTSELLER: ("ItemList.aspx", "Bestseller"),
    NEW_ARRIVALS: ("ItemList.aspx", "ItemNewSpecial"),
}


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_item(item: Dict[str, Any]) -> Optional[CatalogBook]:
    """
    Maps one Aladin item into the local book shape.

    Args:
        item (Dict[str, Any]): Raw element of the `item` array.

    Returns:
        Optional[CatalogBook]: Normalized record, or None when the item has no title.
    """
    title = _text(item.get("title"))
    if not title:
        return None

    best_rank = item.get("bestRank")
    return CatalogBook(
        title=title,
        author=_text(item.get("author")),
        publisher=_text(item.get("publisher")),
        category=_text(item.get("categoryName")),
        isbn=_text(item.get("isbn13")) or _text(item.get("isbn")),
        cover=_text(item.get("cover")),
        description=_text(item.get("description")),
        rank=best_rank if isinstance(best_rank, int) and not isinstance(best_rank, bool) else None,
        pub_date=_text(item.get("pubDate")),
    )


def build_params(mode: str, query: Optional[str] = None, max_results: Optional[int] = None) -> Dict[str, str]:
    """
    Builds the query string for one catalog call.

    Args:
        mode (str): keyword, bestseller or new-arrivals.
        query (Optional[str]): Search term (keyword mode only).
        max_results (Optional[int]): Result cap; defaults depend on the mode.

    Returns:
        Dict[str, str]: Query parameters, including the fixed version and large covers.

    Raises:
        InvalidArgument: If the mode is unknown or a keyword search has no query.
    """
    if mode not in CATALOG_MODES:
        raise InvalidArgument(f"unknown catalog mode: {mode}")
    _, query_type = CATALOG_MODES[mode]

    if max_results is None:
        max_results = settings.CATALOG_SEARCH_LIMIT if mode == KEYWORD else settings.CATALOG_LIST_LIMIT

    params = {
        "ttbkey": settings.ALADIN_TTB_KEY,
        "QueryType": query_type,
        "MaxResults": str(max_results),
        "SearchTarget": "Book",
        "output": "js",
        "Version": settings.ALADIN_API_VERSION,
        "Cover": "Big",
    }
    if mode == KEYWORD:
        if not query or not query.strip():
            raise InvalidArgument("query is required for a keyword search")
        params["Query"] = query.strip()
    return params


async def fetch_catalog(
    mode: str,
    query: Optional[str] = None,
    max_results: Optional[int] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[CatalogBook]:
    """
    Issues one call to the Aladin API and returns the normalized items.

    Args:
        mode (str): keyword, bestseller or new-arrivals.
        query (Optional[str]): Search term for keyword mode.
        max_results (Optional[int]): Result cap.
        transport (Optional[httpx.AsyncBaseTransport]): Injected transport (tests).

    Returns:
        List[CatalogBook]: Items in upstream order.

    Raises:
        ConfigurationError: If ALADIN_TTB_KEY is not configured.
        UpstreamUnavailable: On network errors, non-2xx responses or an unreadable body.
    """
    if not settings.catalog_configured:
        logger.error("Aladin TTB key is not configured.")
        raise ConfigurationError("ALADIN_TTB_KEY가 설정되어 있지 않습니다.")

    params = build_params(mode, query, max_results)
    endpoint, _ = CATALOG_MODES[mode]
    url = f"{settings.ALADIN_API_BASE.rstrip('/')}/{endpoint}"

    client_kwargs: Dict[str, Any] = {"timeout": 10.0}
    if transport is not None:
        client_kwargs["transport"] = transport

    try:
        async with httpx.AsyncClient(**client_kwargs) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as exc:
        logger.error(f"Aladin API HTTP error ({mode}): {exc.response.status_code}")
        raise UpstreamUnavailable("도서 정보를 가져오지 못했습니다.") from exc
    except httpx.RequestError as exc:
        logger.error(f"Aladin API request error ({mode}): {exc}")
        raise UpstreamUnavailable("도서 정보를 가져오지 못했습니다.") from exc
    except ValueError as exc:
        logger.error(f"Aladin API returned an unreadable body ({mode}): {exc}")
        raise UpstreamUnavailable("도서 정보를 가져오지 못했습니다.") from exc

    if not isinstance(data, dict):
        logger.error(f"Aladin API returned an unexpected payload ({mode}).")
        raise UpstreamUnavailable("도서 정보를 가져오지 못했습니다.")
    if "errorCode" in data:
        # Aladin reports bad keys and quota errors with a 200 status.
        logger.error(f"Aladin API error {data.get('errorCode')}: {data.get('errorMessage')}")
        raise UpstreamUnavailable("도서 정보를 가져오지 못했습니다.")

    books = [book for book in (normalize_item(item) for item in data.get("item") or []) if book]
    logger.info(f"Aladin {mode} call succeeded: {len(books)} items.")
    return books


async def search_keyword(query: str, max_results: Optional[int] = None, **kwargs) -> List[CatalogBook]:
    return await fetch_catalog(KEYWORD, query=query, max_results=max_results, **kwargs)


async def fetch_bestsellers(max_results: Optional[int] = None, **kwargs) -> List[CatalogBook]:
    return await fetch_catalog(BESTSELLER, max_results=max_results, **kwargs)


async def fetch_new_arrivals(max_results: Optional[int] = None, **kwargs) -> List[CatalogBook]:
    return await fetch_catalog(NEW_ARRIVALS, max_results=max_results, **kwargs)


class CatalogGateway:
    """
    Object facade over the catalog calls, used as a FastAPI dependency so the
    HTTP layer can be exercised against a fake catalog.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def search(self, query: str) -> List[CatalogBook]:
        return await search_keyword(query, transport=self.transport)

    async def bestsellers(self) -> List[CatalogBook]:
        return await fetch_bestsellers(transport=self.transport)

    async def new_arrivals(self) -> List[CatalogBook]:
        return await fetch_new_arrivals(transport=self.transport)


def get_catalog() -> CatalogGateway:
    return CatalogGateway()
