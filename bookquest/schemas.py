import re
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Tuple, Type, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .core.pagination import Pagination
from .errors import FieldError

ModelT = TypeVar("ModelT", bound=BaseModel)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_PATTERN = re.compile(r"^https?://\S+$")
ISBN_PREFIXES = ("97884", "97913")
LANGUAGES = ("es", "ca")
MIN_PASSWORD_LENGTH = 6


def validate(model: Type[ModelT], data: Any) -> Tuple[Optional[ModelT], List[FieldError]]:
    """Validate ``data`` against ``model``.

    Returns the parsed value and an empty list, or ``None`` and every field
    error found. Never raises for bad input.
    """
    try:
        return model.model_validate(data), []
    except PydanticValidationError as exc:
        errors = [
            FieldError(".".join(str(p) for p in e["loc"]), e["msg"])
            for e in exc.errors()
        ]
        return None, errors


def _required(value: Optional[str], message: str) -> Optional[str]:
    if value is not None and not value.strip():
        raise PydanticCustomError("required", message)
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Users ---

def _check_email(value: Optional[str]) -> Optional[str]:
    if value is not None and not EMAIL_PATTERN.match(value):
        raise PydanticCustomError("email", "Invalid email format")
    return value


def _check_password(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if (
        len(value) < MIN_PASSWORD_LENGTH
        or not re.search(r"[A-Z]", value)
        or not re.search(r"\d", value)
    ):
        raise PydanticCustomError(
            "password",
            "Password must have at least 6 characters and contain at least "
            "one number and one uppercase letter",
        )
    return value


Email = Annotated[str, AfterValidator(_check_email)]
Password = Annotated[str, AfterValidator(_check_password)]
Role = Literal["admin", "user"]


class UserCreate(BaseModel):
    email: Email
    password: Password
    name: str
    role: Optional[Role] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v):
        return _required(v, "Name is required")


class UserUpdate(BaseModel):
    email: Optional[Email] = None
    password: Optional[Password] = None
    name: Optional[str] = None
    role: Optional[Role] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v):
        return _required(v, "Name is required")


class UserLogin(BaseModel):
    email: str
    password: str


class Token(CamelModel):
    auth_token: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: str


# --- Authors / genres ---

class NameIn(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_required(cls, v):
        return _required(v, "Name is required")


class NameRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class NameOut(CamelModel):
    id: int
    name: str
    owner: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NamePage(BaseModel):
    data: List[NameOut]
    pagination: Pagination


# --- Books ---

class BookIn(CamelModel):
    title: str
    author: int = Field(gt=0)
    genre: List[int]
    image_url: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    is_bought: StrictBool = False
    is_favorite: StrictBool = False

    @field_validator("title")
    @classmethod
    def title_required(cls, v):
        return _required(v, "Title is required")

    @field_validator("genre")
    @classmethod
    def genre_ids(cls, v):
        if not v:
            raise PydanticCustomError("genre", "At least one genre is required")
        if any(g <= 0 for g in v):
            raise PydanticCustomError("genre", "Genre ids must be positive integers")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def price_is_number(cls, v):
        if v is not None and (isinstance(v, bool) or not isinstance(v, (int, float))):
            raise PydanticCustomError("number", "Price must be a number")
        return v

    @field_validator("image_url")
    @classmethod
    def image_url_format(cls, v):
        if v and not URL_PATTERN.match(v):
            raise PydanticCustomError("url", "Invalid url")
        return v


class BookOut(CamelModel):
    id: int
    title: str
    author: NameRef
    genre: List[NameRef]
    image_url: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    is_bought: bool
    is_favorite: bool
    owner: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookPage(BaseModel):
    data: List[BookOut]
    pagination: Pagination


# --- Google Books ---

def _positive_int(value, message: str, upper: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise PydanticCustomError("number", message)
    if isinstance(value, str):
        value = value.strip()
        if not re.fullmatch(r"\d+", value):
            raise PydanticCustomError("number", message)
        value = int(value)
    if not isinstance(value, int) or value < 1 or (upper is not None and value > upper):
        raise PydanticCustomError("number", message)
    return value


class SearchParams(BaseModel):
    q: str = Field(default="", validate_default=True)
    page: int = 1
    limit: int = 10

    @field_validator("q")
    @classmethod
    def query_required(cls, v):
        return _required(v, "Parameter 'q' is required").strip()

    @field_validator("page", mode="before")
    @classmethod
    def parse_page(cls, v):
        return _positive_int(v, "Parameter 'page' must be a number greater than 0")

    @field_validator("limit", mode="before")
    @classmethod
    def parse_limit(cls, v):
        return _positive_int(v, "Parameter 'limit' must be a number between 1 and 40", upper=40)


class IsbnParam(BaseModel):
    isbn13: str = Field(min_length=10, max_length=17)

    @field_validator("isbn13")
    @classmethod
    def isbn_format(cls, v):
        cleaned = v.replace("-", "")
        if not re.fullmatch(r"\d{10,13}", cleaned):
            raise PydanticCustomError(
                "isbn", "ISBN13 must contain only numbers (hyphens are allowed)"
            )
        if not cleaned.startswith(ISBN_PREFIXES):
            raise PydanticCustomError("isbn", "ISBN13 must be from Spain (978-84 or 979-13)")
        return v


class ExternalBook(CamelModel):
    isbn13: str = Field(min_length=10)
    title: str
    authors: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    price: Optional[float] = None
    language: Literal["es", "ca"]

    @field_validator("image_url")
    @classmethod
    def image_url_format(cls, v):
        if v is not None and not URL_PATTERN.match(v):
            raise PydanticCustomError("url", "Invalid url")
        return v


class SearchFilters(BaseModel):
    isbn: List[str]
    languages: List[str]


class LanguageStats(BaseModel):
    es: int = Field(ge=0)
    ca: int = Field(ge=0)


class SearchResponse(CamelModel):
    total_items: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    current_page: int = Field(ge=1)
    items_per_page: int = Field(ge=1, le=40)
    items_in_current_page: int = Field(ge=0)
    query: str
    filters: SearchFilters
    stats: LanguageStats
    items: List[ExternalBook]
