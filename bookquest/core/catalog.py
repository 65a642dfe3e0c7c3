"""
Owner-scoped CRUD for the two "named" resources: authors and genres.

Both share one shape (a normalized name unique per owner), so a single
``NameCatalog`` drives them. Names are normalized before every lookup and
write; the unique constraint on ``(owner_id, name)`` closes the gap between
the duplicate check and the insert.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..errors import ConflictError, NotFoundError, ValidationError
from ..schemas import NameIn, NameOut, validate
from .names import normalize_name
from .pagination import Pagination, build_pagination, page_offset

logger = logging.getLogger(__name__)


def parse_id(value) -> Optional[int]:
    """Return ``value`` as a positive integer id, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdecimal():
        parsed = int(value)
        return parsed if parsed > 0 else None
    return None


def name_out(item) -> NameOut:
    return NameOut(
        id=item.id,
        name=item.name,
        owner=item.owner_id,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


class NameCatalog:
    def __init__(self, model, label: str, book_filter):
        self.model = model
        self.label = label
        # Callable[id] -> SQL expression selecting the books that reference the record
        self.book_filter = book_filter

    def read_name(self, payload) -> str:
        value, errors = validate(NameIn, payload)
        if errors:
            raise ValidationError(errors)
        return normalize_name(value.name)

    def _owned(self, db: Session, owner_id: int):
        return db.query(self.model).filter(self.model.owner_id == owner_id)

    def find_by_name(self, db: Session, owner_id: int, name: str):
        # Stored names are normalized, so equality here is case-insensitive
        return (
            self._owned(db, owner_id)
            .filter(self.model.name == name)
            .first()
        )

    def get(self, db: Session, owner_id: int, item_id: int):
        item = self._owned(db, owner_id).filter(self.model.id == item_id).first()
        if item is None:
            raise NotFoundError(f"{self.label.capitalize()} not found")
        return item

    def resolve(self, db: Session, owner_id: int, ref):
        """Look up a reference coming from a book payload; a miss names the id."""
        item_id = parse_id(ref)
        item = None
        if item_id is not None:
            item = self._owned(db, owner_id).filter(self.model.id == item_id).first()
        if item is None:
            raise NotFoundError(f"{self.label.capitalize()} not found: {ref}")
        return item

    def _ensure_unique(self, db: Session, owner_id: int, name: str, current_id=None):
        existing = self.find_by_name(db, owner_id, name)
        if existing is not None and existing.id != current_id:
            raise ConflictError(f"This {self.label} already exists")

    def _commit(self, db: Session, item):
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"This {self.label} already exists")
        db.refresh(item)
        return item

    def create(self, db: Session, owner_id: int, payload):
        name = self.read_name(payload)
        self._ensure_unique(db, owner_id, name)
        item = self.model(name=name, owner_id=owner_id)
        db.add(item)
        return self._commit(db, item)

    def update(self, db: Session, owner_id: int, item_id: int, payload):
        item = self.get(db, owner_id, item_id)
        name = self.read_name(payload)
        self._ensure_unique(db, owner_id, name, current_id=item.id)
        item.name = name
        return self._commit(db, item)

    def get_or_create(self, db: Session, owner_id: int, raw_name: str):
        name = self.read_name({"name": raw_name})
        item = self.find_by_name(db, owner_id, name)
        if item is None:
            item = self.model(name=name, owner_id=owner_id)
            db.add(item)
            db.flush()
            logger.info("Created %s %r for user %s", self.label, name, owner_id)
        return item

    def delete(self, db: Session, owner_id: int, item_id: int):
        item = self.get(db, owner_id, item_id)
        in_use = db.query(models.Book).filter(self.book_filter(item.id)).count()
        if in_use:
            raise ConflictError(
                f"This {self.label} is still used by {in_use} book(s)"
            )
        removed = {"id": item.id, "name": item.name}
        db.delete(item)
        db.commit()
        return removed

    def list(
        self,
        db: Session,
        owner_id: int,
        page: int,
        per_page: int,
        search: Optional[str] = None,
    ) -> Tuple[List, Pagination]:
        query = self._owned(db, owner_id)
        if search:
            query = query.filter(
                func.lower(self.model.name).contains(search.lower(), autoescape=True)
            )
        total = query.count()
        items = (
            query.order_by(self.model.id)
            .offset(page_offset(page, per_page))
            .limit(per_page)
            .all()
        )
        return items, build_pagination(total, page, per_page)


authors = NameCatalog(
    models.Author,
    "author",
    lambda author_id: models.Book.author_id == author_id,
)

genres = NameCatalog(
    models.Genre,
    "genre",
    lambda genre_id: models.Book.genres.any(models.Genre.id == genre_id),
)
