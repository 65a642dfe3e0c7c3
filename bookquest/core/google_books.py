"""
Google Books search restricted to Spanish editions.

The provider's own paging cannot filter by ISBN prefix or language, so the
search pulls several pages, filters the merged list locally and then
re-paginates it with the caller's page size.
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import NotFoundError
from ..schemas import (
    ISBN_PREFIXES,
    LANGUAGES,
    ExternalBook,
    LanguageStats,
    SearchFilters,
    SearchParams,
    SearchResponse,
    validate,
)
from .pagination import page_offset, total_pages

logger = logging.getLogger(__name__)

FILTERS = SearchFilters(isbn=["978-84", "979-13"], languages=list(LANGUAGES))


def find_isbn13(volume_info: Dict[str, Any]) -> Optional[str]:
    for identifier in volume_info.get("industryIdentifiers") or []:
        if identifier.get("type") == "ISBN_13":
            return identifier.get("identifier")
    return None


def is_spanish_edition(item: Dict[str, Any]) -> bool:
    volume_info = item.get("volumeInfo") or {}
    isbn13 = find_isbn13(volume_info)
    if not isbn13:
        return False
    if not isbn13.replace("-", "").startswith(ISBN_PREFIXES):
        return False
    return volume_info.get("language") in LANGUAGES


def filter_items(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [item for item in items if is_spanish_edition(item)]


def paginate(items: List[Any], page: int, limit: int) -> List[Any]:
    """Slice one page out of ``items``; a page past the end is a 404."""
    pages = total_pages(len(items), limit)
    if page > pages and items:
        raise NotFoundError(f"Page {page} does not exist. Total pages: {pages}")
    start = page_offset(page, limit)
    return items[start:start + limit]


def to_record(item: Dict[str, Any]) -> Dict[str, Any]:
    """Map a raw provider volume onto the ExternalBook shape."""
    volume_info = item.get("volumeInfo") or {}
    sale_info = item.get("saleInfo") or {}
    image_links = volume_info.get("imageLinks") or {}

    price = None
    for key in ("listPrice", "retailPrice"):
        amount = (sale_info.get(key) or {}).get("amount")
        if amount:
            price = amount
            break

    return {
        "isbn13": find_isbn13(volume_info) or "",
        "title": volume_info.get("title") or "",
        "authors": volume_info.get("authors") or [],
        "imageUrl": image_links.get("thumbnail") or image_links.get("smallThumbnail"),
        "categories": volume_info.get("categories") or [],
        "description": volume_info.get("description"),
        "price": price,
        "language": volume_info.get("language"),
    }


def to_external_books(items: List[Dict[str, Any]]) -> List[ExternalBook]:
    books = []
    for item in items:
        record = to_record(item)
        book, errors = validate(ExternalBook, record)
        if errors:
            logger.warning("Book with ISBN %s failed validation: %s", record["isbn13"], errors)
            continue
        books.append(book)
    return books


def build_response(params: SearchParams, filtered: List[Dict[str, Any]]) -> SearchResponse:
    books = to_external_books(paginate(filtered, params.page, params.limit))
    stats = {lang: sum(1 for b in books if b.language == lang) for lang in LANGUAGES}
    return SearchResponse(
        total_items=len(filtered),
        total_pages=total_pages(len(filtered), params.limit),
        current_page=params.page,
        items_per_page=params.limit,
        items_in_current_page=len(books),
        query=params.q,
        filters=FILTERS,
        stats=LanguageStats(**stats),
        items=books,
    )


async def search_google_books(client, params: SearchParams) -> SearchResponse:
    items = await client.search(params.q)
    filtered = filter_items(items)
    logger.info(
        "Google Books search %r: %d items, %d Spanish editions",
        params.q,
        len(items),
        len(filtered),
    )
    return build_response(params, filtered)


async def lookup_isbn(client, isbn13: str) -> ExternalBook:
    cleaned = isbn13.replace("-", "")
    items = filter_items(await client.lookup_isbn(cleaned))
    for book in to_external_books(items):
        if book.isbn13.replace("-", "") == cleaned:
            return book
    raise NotFoundError(f"No Spanish edition found for ISBN {isbn13}")
