from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from .. import models, schemas
from ..database import get_db
from ..auth import get_current_user_required
from ..core import books
from ..core.images import ImageStore, get_image_store
from ..core.parsing import read_book_payload
from ..errors import BookQuestError

router = APIRouter(prefix="/api/book", tags=["books"])

def _page(found, pagination) -> schemas.BookPage:
    return schemas.BookPage(data=[books.book_out(b) for b in found], pagination=pagination)

async def _write(request: Request, images: ImageStore, write):
    """Parse the body, store any uploaded cover and run ``write(data, image_url)``.

    A failed upload means no new image; a rejected write removes the stored cover.
    """
    data, upload = await read_book_payload(request)
    image_url = await images.save(upload) if upload else None
    try:
        return write(data, image_url)
    except BookQuestError:
        if image_url:
            images.discard(image_url)
        raise

@router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.BookOut)
async def create_book(
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
    images: ImageStore = Depends(get_image_store),
):
    book = await _write(
        request, images, lambda data, image_url: books.create_book(db, current_user.id, data, image_url)
    )
    return books.book_out(book)

@router.get("", response_model=schemas.BookPage)
async def list_books(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
):
    return _page(*books.list_books(db, current_user.id, page, per_page, search=search))

def _shelf_route(shelf: str):
    async def list_shelf(
        page: int = Query(1, ge=1),
        per_page: int = Query(10, ge=1),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(get_current_user_required),
    ):
        return _page(*books.list_books(db, current_user.id, page, per_page, books.SHELVES[shelf]))
    list_shelf.__name__ = f"list_{shelf}"
    return list_shelf

# Registered before /{book_id} so the shelf names are not read as ids
for _shelf in books.SHELVES:
    router.add_api_route(f"/{_shelf}", _shelf_route(_shelf), methods=["GET"], response_model=schemas.BookPage)

@router.get("/{book_id}", response_model=schemas.BookOut)
async def book_detail(
    book_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
):
    return books.book_out(books.get_book(db, current_user.id, book_id))

@router.put("/{book_id}", response_model=schemas.BookOut)
async def update_book(
    book_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
    images: ImageStore = Depends(get_image_store),
):
    book = await _write(
        request,
        images,
        lambda data, image_url: books.update_book(db, current_user.id, book_id, data, image_url),
    )
    return books.book_out(book)

@router.delete("/{book_id}")
async def delete_book(
    book_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
):
    removed = books.delete_book(db, current_user.id, book_id)
    return {"message": "Book deleted successfully", "book": removed}
