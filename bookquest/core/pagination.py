"""
Pagination descriptors for list endpoints.

``build_pagination`` does no range checking: a page past the end yields
``from > to`` and no next page. Callers that must reject such pages (the
Google Books search) compare against ``total_pages`` themselves.
"""

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: int = Field(alias="from")
    to: int
    per_page: int
    current_page: int
    has_more_pages: bool
    next_page: Optional[int] = None
    prev_page: Optional[int] = None


def total_pages(total_items: int, per_page: int) -> int:
    return math.ceil(total_items / per_page)


def build_pagination(total_items: int, current_page: int, per_page: int) -> Pagination:
    pages = total_pages(total_items, per_page)
    has_more = current_page < pages
    return Pagination(
        from_=(current_page - 1) * per_page + 1,
        to=min(current_page * per_page, total_items),
        per_page=per_page,
        current_page=current_page,
        has_more_pages=has_more,
        next_page=current_page + 1 if has_more else None,
        prev_page=current_page - 1 if current_page > 1 else None,
    )


def page_offset(current_page: int, per_page: int) -> int:
    return (current_page - 1) * per_page
