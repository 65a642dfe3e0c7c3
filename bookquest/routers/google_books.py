from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, Request, status
from sqlalchemy.orm import Session
from .. import models, schemas
from ..database import get_db
from ..auth import get_current_user_required
from ..core import books, google_books, wishlist
from ..errors import ValidationError
from ..google_books_client import GoogleBooksClient, get_google_books_client

router = APIRouter(prefix="/api/google-books", tags=["google-books"])

@router.get("", response_model=schemas.SearchResponse)
async def search(
    request: Request,
    client: GoogleBooksClient = Depends(get_google_books_client),
    current_user: models.User = Depends(get_current_user_required),
):
    """Search Google Books for Spanish/Catalan editions, e.g. ?q=cervantes&page=1&limit=10."""
    params, errors = schemas.validate(schemas.SearchParams, dict(request.query_params))
    if errors:
        raise ValidationError(errors)
    return await google_books.search_google_books(client, params)

@router.get("/{isbn13}", response_model=schemas.ExternalBook)
async def lookup(
    isbn13: str,
    client: GoogleBooksClient = Depends(get_google_books_client),
    current_user: models.User = Depends(get_current_user_required),
):
    _, errors = schemas.validate(schemas.IsbnParam, {"isbn13": isbn13})
    if errors:
        raise ValidationError(errors)
    return await google_books.lookup_isbn(client, isbn13)

@router.post("/{isbn13}/add-to-wishlist", status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    isbn13: str,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
):
    record = wishlist.read_import_request(isbn13, payload)
    book = wishlist.add_to_wishlist(db, current_user.id, record)
    return {
        "message": "Book added to wishlist successfully",
        "book": books.book_out(book).model_dump(mode="json", by_alias=True),
    }
