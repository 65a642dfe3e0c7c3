import asyncio

import httpx
import pytest

from bookquest.core import google_books
from bookquest.errors import NotFoundError, UpstreamError
from bookquest.google_books_client import MAX_RESULTS_PER_REQUEST, GoogleBooksClient
from factories import volume


def provider_catalog():
    """55 raw records; the 20 even-indexed ones below 40 are Spanish editions."""
    items = []
    for i in range(55):
        if i % 2 == 0 and i < 40:
            language = "es" if i % 4 == 0 else "ca"
            items.append(volume(f"97884{i:08d}", f"Libro {i}", language=language))
        else:
            items.append(volume(f"97801{i:08d}", f"Book {i}", language="en"))
    return items


def paged_handler(items, calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        start = int(request.url.params["startIndex"])
        size = int(request.url.params["maxResults"])
        page = items[start:start + size]
        return httpx.Response(200, json={"totalItems": len(items), "items": page} if page else {})

    return handler


SPANISH_TITLES = [f"Libro {i}" for i in range(0, 40, 2)]


class TestFiltering:
    def test_spanish_edition_rules(self) -> None:
        assert google_books.is_spanish_edition(volume("9788437604947", "A"))
        assert google_books.is_spanish_edition(volume("979-13-87654-32-1", "A", language="ca"))
        assert not google_books.is_spanish_edition(volume("9780141439518", "A"))
        assert not google_books.is_spanish_edition(volume("9788437604947", "A", language="en"))
        assert not google_books.is_spanish_edition({"volumeInfo": {"title": "No ids"}})

    def test_filter_keeps_provider_order(self) -> None:
        filtered = google_books.filter_items(provider_catalog())
        assert [i["volumeInfo"]["title"] for i in filtered] == SPANISH_TITLES

    def test_record_mapping_prefers_thumbnail_and_list_price(self) -> None:
        item = volume(
            "9788437604947",
            "Rayuela",
            authors=["Julio Cortázar"],
            volume_info={"imageLinks": {"smallThumbnail": "http://x/s", "thumbnail": "http://x/t"}},
            saleInfo={"listPrice": {"amount": 20.0}, "retailPrice": {"amount": 15.0}},
        )
        record = google_books.to_record(item)
        assert record["imageUrl"] == "http://x/t"
        assert record["price"] == 20.0
        assert record["categories"] == []

    def test_invalid_records_are_dropped(self) -> None:
        bad = volume("9788437604947", "Roto", volume_info={"imageLinks": {"thumbnail": "ftp://x"}})
        good = volume("9788437604954", "Sano")
        books = google_books.to_external_books([bad, good])
        assert [b.title for b in books] == ["Sano"]


class TestPaginate:
    def test_page_past_the_end(self) -> None:
        with pytest.raises(NotFoundError, match="Page 3 does not exist. Total pages: 2"):
            google_books.paginate(list(range(20)), 3, 10)

    def test_empty_results_never_fail(self) -> None:
        assert google_books.paginate([], 5, 10) == []

    def test_slice(self) -> None:
        assert google_books.paginate(list(range(25)), 3, 10) == [20, 21, 22, 23, 24]


class TestGoogleBooksClient:
    def test_search_merges_batches_in_order(self) -> None:
        calls = []
        items = provider_catalog()
        transport = httpx.MockTransport(paged_handler(items, calls))

        async def run():
            async with GoogleBooksClient(transport=transport, retry_delay=0, batches=3) as client:
                return await client.search("novela")

        merged = asyncio.run(run())
        assert len(merged) == 55
        assert merged == items
        assert sorted(int(r.url.params["startIndex"]) for r in calls) == [
            0, MAX_RESULTS_PER_REQUEST, 2 * MAX_RESULTS_PER_REQUEST
        ]

    def test_transport_failures_are_retried(self) -> None:
        attempts = []

        def flaky(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("boom", request=request)
            return httpx.Response(200, json={"items": [volume("9788437604947", "A")]})

        async def run():
            async with GoogleBooksClient(
                transport=httpx.MockTransport(flaky), retry_delay=0, max_retries=2, batches=1
            ) as client:
                return await client.search("a")

        assert len(asyncio.run(run())) == 1
        assert len(attempts) == 3

    def test_failed_batch_is_treated_as_empty(self) -> None:
        items = provider_catalog()
        ok = paged_handler(items)

        def handler(request):
            if request.url.params["startIndex"] == "0":
                raise httpx.ReadTimeout("slow", request=request)
            return ok(request)

        async def run():
            async with GoogleBooksClient(
                transport=httpx.MockTransport(handler), retry_delay=0, batches=2
            ) as client:
                return await client.search("a")

        assert asyncio.run(run()) == items[MAX_RESULTS_PER_REQUEST:]

    def test_http_error_status_is_an_empty_batch(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        async def run():
            async with GoogleBooksClient(transport=transport, retry_delay=0, batches=2) as client:
                return await client.search("a")

        assert asyncio.run(run()) == []

    def test_lookup_failure_raises(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(500))

        async def run():
            async with GoogleBooksClient(transport=transport, retry_delay=0) as client:
                return await client.lookup_isbn("9788437604947")

        with pytest.raises(UpstreamError):
            asyncio.run(run())


class TestSearchEndpoint:
    def test_requires_login(self, client, mock_google_books) -> None:
        mock_google_books(paged_handler(provider_catalog()))
        client.cookies.clear()
        assert client.get("/api/google-books?q=novela").status_code == 401

    def test_first_page(self, client, auth_headers, mock_google_books) -> None:
        mock_google_books(paged_handler(provider_catalog()))
        response = client.get("/api/google-books?q=novela&limit=10", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["totalItems"] == 20
        assert body["totalPages"] == 2
        assert body["currentPage"] == 1
        assert body["itemsPerPage"] == 10
        assert body["itemsInCurrentPage"] == 10
        assert body["query"] == "novela"
        assert body["filters"] == {"isbn": ["978-84", "979-13"], "languages": ["es", "ca"]}
        assert [b["title"] for b in body["items"]] == SPANISH_TITLES[:10]
        assert body["stats"] == {"es": 5, "ca": 5}

    def test_second_page_holds_the_rest(self, client, auth_headers, mock_google_books) -> None:
        mock_google_books(paged_handler(provider_catalog()))
        response = client.get("/api/google-books?q=novela&page=2&limit=10", headers=auth_headers)
        assert response.status_code == 200
        assert [b["title"] for b in response.json()["items"]] == SPANISH_TITLES[10:]

    def test_page_past_the_end(self, client, auth_headers, mock_google_books) -> None:
        mock_google_books(paged_handler(provider_catalog()))
        response = client.get("/api/google-books?q=novela&page=3&limit=10", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Page 3 does not exist. Total pages: 2"}

    def test_no_results(self, client, auth_headers, mock_google_books) -> None:
        mock_google_books(paged_handler([]))
        response = client.get("/api/google-books?q=zzz&page=4", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["totalItems"] == 0
        assert response.json()["items"] == []

    def test_parameter_errors(self, client, auth_headers, mock_google_books) -> None:
        mock_google_books(paged_handler([]))
        response = client.get("/api/google-books?limit=50", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"field": "q", "message": "Parameter 'q' is required"},
            {"field": "limit", "message": "Parameter 'limit' must be a number between 1 and 40"},
        ]


class TestLookupEndpoint:
    def test_found(self, client, auth_headers, mock_google_books) -> None:
        seen = []

        def handler(request):
            seen.append(request.url.params["q"])
            return httpx.Response(
                200, json={"items": [volume("9788437604947", "Rayuela", authors=["Julio Cortázar"])]}
            )

        mock_google_books(handler)
        response = client.get("/api/google-books/978-84-376-0494-7", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["title"] == "Rayuela"
        assert response.json()["authors"] == ["Julio Cortázar"]
        assert seen == ["isbn:9788437604947"]

    def test_not_spanish(self, client, auth_headers, mock_google_books) -> None:
        mock_google_books(lambda request: httpx.Response(200, json={}))
        response = client.get("/api/google-books/9788437604947", headers=auth_headers)
        assert response.status_code == 404

    def test_invalid_isbn(self, client, auth_headers, mock_google_books) -> None:
        mock_google_books(lambda request: httpx.Response(200, json={}))
        response = client.get("/api/google-books/9780141439518", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "isbn13"

    def test_upstream_down(self, client, auth_headers, mock_google_books) -> None:
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        mock_google_books(handler)
        response = client.get("/api/google-books/9788437604947", headers=auth_headers)
        assert response.status_code == 502
        assert response.json() == {"message": "Google Books is unreachable"}
