"""
Routes for authors and genres.

Both resources expose the same operations, so one factory builds a router
per ``NameCatalog``.
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session
from .. import models, schemas
from ..database import get_db
from ..auth import get_current_user_required
from ..core import books
from ..core.catalog import NameCatalog, authors, genres, name_out

def make_name_router(catalog: NameCatalog, prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[catalog.label])

    @router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.NameOut)
    async def create(
        payload: Dict[str, Any] = Body(...),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user_required),
    ):
        return name_out(catalog.create(db, current_user.id, payload))

    @router.get("", response_model=schemas.NamePage)
    async def list_items(
        page: int = Query(1, ge=1),
        per_page: int = Query(10, ge=1),
        search: Optional[str] = None,
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user_required),
    ):
        items, pagination = catalog.list(db, current_user.id, page, per_page, search)
        return schemas.NamePage(data=[name_out(i) for i in items], pagination=pagination)

    @router.get("/{item_id}", response_model=schemas.NameOut)
    async def detail(
        item_id: int,
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user_required),
    ):
        return name_out(catalog.get(db, current_user.id, item_id))

    @router.put("/{item_id}", response_model=schemas.NameOut)
    async def update(
        item_id: int,
        payload: Dict[str, Any] = Body(...),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user_required),
    ):
        return name_out(catalog.update(db, current_user.id, item_id, payload))

    @router.delete("/{item_id}")
    async def delete(
        item_id: int,
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user_required),
    ):
        removed = catalog.delete(db, current_user.id, item_id)
        return {
            "message": f"{catalog.label.capitalize()} deleted successfully",
            catalog.label: removed,
        }

    @router.get("/{item_id}/books", response_model=schemas.BookPage)
    async def item_books(
        item_id: int,
        page: int = Query(1, ge=1),
        per_page: int = Query(10, ge=1),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user_required),
    ):
        item = catalog.get(db, current_user.id, item_id)
        found, pagination = books.list_books(
            db, current_user.id, page, per_page, catalog.book_filter(item.id)
        )
        return schemas.BookPage(data=[books.book_out(b) for b in found], pagination=pagination)

    return router

author_router = make_name_router(authors, "/api/author")
genre_router = make_name_router(genres, "/api/genre")
