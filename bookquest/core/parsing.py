"""
Typed parsing of book request bodies.

Books can be submitted as JSON or as a multipart form (so a cover image can
ride along). Form fields arrive as strings; this module converts them to the
types the book schema expects and reports anything it cannot convert as a
field error. Nothing is coerced by truthiness: "yes" is not a boolean.
"""

import json
from typing import List, Optional, Tuple

from fastapi import Request
from starlette.datastructures import UploadFile

from ..errors import FieldError, ValidationError

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
TEXT_FIELDS = ("title", "author", "description")
BOOL_FIELDS = ("isBought", "isFavorite")


def parse_bool(value: str, field: str, errors: List[FieldError]) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    errors.append(FieldError(field, f"'{value}' is not a boolean (use true or false)"))
    return None


def parse_number(value: str, field: str, errors: List[FieldError]) -> Optional[float]:
    if not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        errors.append(FieldError(field, f"'{value}' is not a number"))
        return None


def parse_book_form(form) -> Tuple[dict, Optional[UploadFile]]:
    """Convert a submitted form into a partial book payload plus an optional upload."""
    data = {}
    errors: List[FieldError] = []
    upload = None

    for field in TEXT_FIELDS:
        if field in form:
            data[field] = form[field]

    genres = form.getlist("genre")
    if genres:
        data["genre"] = list(genres)

    if "price" in form:
        data["price"] = parse_number(form["price"], "price", errors)

    for field in BOOL_FIELDS:
        if field in form:
            data[field] = parse_bool(form[field], field, errors)

    image = form.get("imageUrl")
    if isinstance(image, UploadFile):
        if image.filename:
            upload = image
    elif image is not None:
        data["imageUrl"] = image

    if errors:
        raise ValidationError(errors)
    return data, upload


def parse_book_json(body: bytes) -> dict:
    try:
        data = json.loads(body or b"{}")
    except ValueError:
        raise ValidationError([FieldError("body", "Malformed JSON body")])
    if not isinstance(data, dict):
        raise ValidationError([FieldError("body", "Expected a JSON object")])
    genre = data.get("genre")
    if genre is not None and not isinstance(genre, list):
        data["genre"] = [genre]
    return data


async def read_book_payload(request: Request) -> Tuple[dict, Optional[UploadFile]]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return parse_book_form(form)
    return parse_book_json(await request.body()), None
