"""
Owner-scoped book operations.

Author and genre references are resolved before the payload is validated,
so a dangling id is reported as "Author not found: 7" instead of a format
error. Updates merge the submitted fields over the stored ones.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models
from ..errors import NotFoundError, ValidationError
from ..schemas import BookIn, BookOut, NameRef, validate
from .catalog import authors, genres
from .pagination import Pagination, build_pagination, page_offset

# Shelves: named boolean filters over a user's books
SHELVES = {
    "wishlist": models.Book.is_bought.is_(False),
    "purchased": models.Book.is_bought.is_(True),
    "favorites": models.Book.is_favorite.is_(True),
}


def book_out(book: models.Book) -> BookOut:
    return BookOut(
        id=book.id,
        title=book.title,
        author=NameRef.model_validate(book.author),
        genre=[NameRef.model_validate(g) for g in book.genres],
        image_url=book.image_url,
        description=book.description,
        price=book.price,
        is_bought=book.is_bought,
        is_favorite=book.is_favorite,
        owner=book.owner_id,
        created_at=book.created_at,
        updated_at=book.updated_at,
    )


def get_book(db: Session, owner_id: int, book_id: int) -> models.Book:
    book = (
        db.query(models.Book)
        .filter(models.Book.id == book_id, models.Book.owner_id == owner_id)
        .first()
    )
    if book is None:
        raise NotFoundError("Book not found")
    return book


def find_by_title(db: Session, owner_id: int, title: str) -> Optional[models.Book]:
    return (
        db.query(models.Book)
        .filter(models.Book.owner_id == owner_id, models.Book.title == title)
        .first()
    )


def list_books(
    db: Session,
    owner_id: int,
    page: int,
    per_page: int,
    *criteria,
    search: Optional[str] = None,
) -> Tuple[List[models.Book], Pagination]:
    query = db.query(models.Book).filter(models.Book.owner_id == owner_id, *criteria)
    if search:
        query = query.filter(
            func.lower(models.Book.title).contains(search.lower(), autoescape=True)
        )
    total = query.count()
    books = (
        query.order_by(models.Book.id)
        .offset(page_offset(page, per_page))
        .limit(per_page)
        .all()
    )
    return books, build_pagination(total, page, per_page)


def _resolve_references(db: Session, owner_id: int, data: dict) -> List[models.Genre]:
    """Check every author/genre id present in ``data``; return the resolved genres."""
    if "author" in data:
        authors.resolve(db, owner_id, data["author"])
    resolved = []
    if "genre" in data:
        refs = data["genre"] if isinstance(data["genre"], list) else [data["genre"]]
        for ref in refs:
            genre = genres.resolve(db, owner_id, ref)
            if genre not in resolved:
                resolved.append(genre)
        data["genre"] = [g.id for g in resolved]
    return resolved


def _by_alias(data: dict) -> dict:
    """Rename snake_case field names to the camelCase keys used for merging."""
    aliases = {name: field.alias for name, field in BookIn.model_fields.items() if field.alias}
    return {aliases.get(key, key): value for key, value in data.items()}


def _validate(data: dict) -> BookIn:
    value, errors = validate(BookIn, data)
    if errors:
        raise ValidationError(errors)
    return value


def _apply(book: models.Book, value: BookIn, book_genres: List[models.Genre]):
    book.title = value.title
    book.author_id = value.author
    book.genres = book_genres
    book.image_url = value.image_url or None
    book.description = value.description
    book.price = value.price
    book.is_bought = value.is_bought
    book.is_favorite = value.is_favorite


def create_book(
    db: Session, owner_id: int, data: dict, image_url: Optional[str] = None
) -> models.Book:
    data = _by_alias(data)
    book_genres = _resolve_references(db, owner_id, data)
    if image_url:
        data["imageUrl"] = image_url
    value = _validate(data)

    book = models.Book(owner_id=owner_id)
    _apply(book, value, book_genres)
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


def _current_values(book: models.Book) -> dict:
    return {
        "title": book.title,
        "author": book.author_id,
        "genre": [g.id for g in book.genres],
        "imageUrl": book.image_url,
        "description": book.description,
        "price": book.price,
        "isBought": book.is_bought,
        "isFavorite": book.is_favorite,
    }


def update_book(
    db: Session, owner_id: int, book_id: int, data: dict, image_url: Optional[str] = None
) -> models.Book:
    book = get_book(db, owner_id, book_id)
    data = _by_alias(data)
    resolved = _resolve_references(db, owner_id, data)
    book_genres = resolved if "genre" in data else list(book.genres)

    merged = _current_values(book)
    merged.update(data)
    if image_url:
        merged["imageUrl"] = image_url
    value = _validate(merged)

    _apply(book, value, book_genres)
    db.commit()
    db.refresh(book)
    return book


def delete_book(db: Session, owner_id: int, book_id: int) -> dict:
    book = get_book(db, owner_id, book_id)
    removed = {"id": book.id, "title": book.title}
    db.delete(book)
    db.commit()
    return removed
