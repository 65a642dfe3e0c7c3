import logging
from dataclasses import asdict, dataclass
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings

logger = logging.getLogger(__name__)


@dataclass
class FieldError:
    field: str
    message: str


class BookQuestError(Exception):
    """Base class for errors reported to the client with a fixed status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(BookQuestError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: List[FieldError], message: Optional[str] = None):
        super().__init__(message or "Validation error")
        self.errors = errors

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": [asdict(e) for e in self.errors]}


class UnauthorizedError(BookQuestError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(BookQuestError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookQuestError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookQuestError):
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(BookQuestError):
    status_code = status.HTTP_502_BAD_GATEWAY


def _location(loc) -> str:
    # Drop the "query"/"path"/"body" prefix FastAPI puts on parameter errors
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("query", "path", "body", "header", "cookie"):
        parts = parts[1:]
    return ".".join(parts)


async def bookquest_error_handler(request: Request, exc: BookQuestError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [FieldError(_location(e["loc"]), e["msg"]) for e in exc.errors()]
    return await bookquest_error_handler(request, ValidationError(errors))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = "This route does not exist"
    else:
        message = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("ERROR %s %s", request.method, request.url.path)
    content = {"message": "Internal server error"}
    if settings.is_development:
        content["detail"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(BookQuestError, bookquest_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
