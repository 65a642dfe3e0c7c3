from bookquest import schemas
from bookquest.errors import FieldError


def messages(errors):
    return {e.field: e.message for e in errors}


class TestUserSchemas:
    def test_valid_user(self) -> None:
        value, errors = schemas.validate(
            schemas.UserCreate,
            {"email": "ana@example.com", "password": "Secret1", "name": "Ana"},
        )
        assert errors == []
        assert value.role is None

    def test_every_problem_is_reported(self) -> None:
        """A bad payload yields one error per field rather than stopping at the first."""
        value, errors = schemas.validate(
            schemas.UserCreate,
            {"email": "not-an-email", "password": "weak", "name": "  ", "role": "root"},
        )
        assert value is None
        found = messages(errors)
        assert found["email"] == "Invalid email format"
        assert found["password"].startswith("Password must have at least 6 characters")
        assert found["name"] == "Name is required"
        assert "role" in found

    def test_password_needs_digit_and_uppercase(self) -> None:
        for password in ("secret123", "SecretPass", "Ab1"):
            _, errors = schemas.validate(
                schemas.UserCreate,
                {"email": "a@b.co", "password": password, "name": "A"},
            )
            assert "password" in messages(errors)

    def test_update_is_partial(self) -> None:
        value, errors = schemas.validate(schemas.UserUpdate, {"name": "Nuevo"})
        assert errors == []
        assert value.model_dump(exclude_unset=True) == {"name": "Nuevo"}


class TestBookSchema:
    def test_defaults(self) -> None:
        value, errors = schemas.validate(
            schemas.BookIn, {"title": "Rayuela", "author": 1, "genre": [2]}
        )
        assert errors == []
        assert value.is_bought is False
        assert value.is_favorite is False

    def test_empty_genre_list(self) -> None:
        _, errors = schemas.validate(
            schemas.BookIn, {"title": "Rayuela", "author": 1, "genre": []}
        )
        assert messages(errors) == {"genre": "At least one genre is required"}

    def test_image_url_may_be_empty(self) -> None:
        _, errors = schemas.validate(
            schemas.BookIn, {"title": "Rayuela", "author": 1, "genre": [1], "imageUrl": ""}
        )
        assert errors == []

    def test_bad_image_url(self) -> None:
        _, errors = schemas.validate(
            schemas.BookIn,
            {"title": "Rayuela", "author": 1, "genre": [1], "imageUrl": "cover.png"},
        )
        assert messages(errors) == {"imageUrl": "Invalid url"}

    def test_flags_and_price_are_strict(self) -> None:
        _, errors = schemas.validate(
            schemas.BookIn,
            {"title": "Rayuela", "author": 1, "genre": [1], "isBought": "yes", "price": "12"},
        )
        assert set(messages(errors)) == {"isBought", "price"}

    def test_blank_title(self) -> None:
        _, errors = schemas.validate(
            schemas.BookIn, {"title": " ", "author": 1, "genre": [1]}
        )
        assert messages(errors) == {"title": "Title is required"}


class TestSearchParams:
    def test_defaults_and_strip(self) -> None:
        value, errors = schemas.validate(schemas.SearchParams, {"q": "  cervantes "})
        assert errors == []
        assert (value.q, value.page, value.limit) == ("cervantes", 1, 10)

    def test_query_strings_are_parsed(self) -> None:
        value, _ = schemas.validate(
            schemas.SearchParams, {"q": "lorca", "page": "2", "limit": "40"}
        )
        assert (value.page, value.limit) == (2, 40)

    def test_missing_query(self) -> None:
        _, errors = schemas.validate(schemas.SearchParams, {})
        assert errors == [FieldError("q", "Parameter 'q' is required")]

    def test_out_of_range(self) -> None:
        _, errors = schemas.validate(
            schemas.SearchParams, {"q": "x", "page": "0", "limit": "41"}
        )
        assert messages(errors) == {
            "page": "Parameter 'page' must be a number greater than 0",
            "limit": "Parameter 'limit' must be a number between 1 and 40",
        }

    def test_non_numeric_page(self) -> None:
        _, errors = schemas.validate(schemas.SearchParams, {"q": "x", "page": "dos"})
        assert "page" in messages(errors)


class TestIsbnParam:
    def test_spanish_prefixes(self) -> None:
        for isbn in ("9788437604947", "978-84-376-0494-7", "9791387654321"):
            _, errors = schemas.validate(schemas.IsbnParam, {"isbn13": isbn})
            assert errors == [], isbn

    def test_foreign_prefix(self) -> None:
        _, errors = schemas.validate(schemas.IsbnParam, {"isbn13": "9780141439518"})
        assert messages(errors) == {"isbn13": "ISBN13 must be from Spain (978-84 or 979-13)"}

    def test_letters(self) -> None:
        _, errors = schemas.validate(schemas.IsbnParam, {"isbn13": "97884ABC04947"})
        assert "isbn13" in messages(errors)


class TestExternalBook:
    def test_arrays_default_to_empty(self) -> None:
        value, errors = schemas.validate(
            schemas.ExternalBook,
            {"isbn13": "9788437604947", "title": "Rayuela", "language": "es"},
        )
        assert errors == []
        assert value.authors == []
        assert value.categories == []

    def test_language_allow_list(self) -> None:
        _, errors = schemas.validate(
            schemas.ExternalBook,
            {"isbn13": "9788437604947", "title": "Rayuela", "language": "en"},
        )
        assert "language" in messages(errors)
