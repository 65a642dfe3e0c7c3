"""Import a Google Books result into a user's wishlist."""

import logging

from sqlalchemy.orm import Session

from ..errors import ConflictError, FieldError, ValidationError
from ..schemas import ExternalBook, IsbnParam, validate
from . import books
from .catalog import authors, genres

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown author"
UNCATEGORIZED = "Uncategorized"


def read_import_request(isbn13: str, body) -> ExternalBook:
    """Validate the path ISBN and the submitted record, and check they agree."""
    _, errors = validate(IsbnParam, {"isbn13": isbn13})
    record, record_errors = validate(ExternalBook, body)
    errors += record_errors
    if errors:
        raise ValidationError(errors)
    if isbn13.replace("-", "") != record.isbn13.replace("-", ""):
        raise ValidationError(
            [FieldError("isbn13", "ISBN in URL does not match ISBN in request body")],
            message="ISBN mismatch",
        )
    return record


def add_to_wishlist(db: Session, owner_id: int, record: ExternalBook):
    if books.find_by_title(db, owner_id, record.title) is not None:
        raise ConflictError("This book is already in your wishlist")

    author_name = record.authors[0] if record.authors else UNKNOWN_AUTHOR
    try:
        author = authors.get_or_create(db, owner_id, author_name)

        book_genres = []
        for category in record.categories or [UNCATEGORIZED]:
            genre = genres.get_or_create(db, owner_id, category)
            if genre not in book_genres:
                book_genres.append(genre)

        data = {
            "title": record.title,
            "author": author.id,
            "genre": [g.id for g in book_genres],
            "imageUrl": record.image_url or "",
            "description": record.description or "",
            "price": record.price,
            "isBought": False,
            "isFavorite": False,
        }
        book = books.create_book(db, owner_id, data)
    except ValidationError:
        db.rollback()
        raise
    logger.info("Imported %s (%s) into wishlist of user %s", record.title, record.isbn13, owner_id)
    return book
