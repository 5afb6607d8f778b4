"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest

from booksearch.internal.models import CanonicalBook
from booksearch.internal.sources.google_books_api import GoogleBooksProvider
from booksearch.internal.sources.openlibrary_api import OpenLibraryProvider

GOOGLE_URL = "https://books.test/volumes"
OPENLIBRARY_URL = "https://openlibrary.test"


# ============================================================
# Fake aiohttp session
# ============================================================


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, body: str = ""):
        self.status = status
        self.payload = payload if payload is not None else {}
        self.body = body

    @property
    def ok(self) -> bool:
        return self.status < 400

    async def json(self, content_type: str | None = None) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def text(self) -> str:
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession. GET requests are answered by the most
    recently added route whose URL fragment and params predicate match.
    """

    def __init__(self):
        self.routes: list[tuple[str, Callable[[dict], bool] | None, Any]] = []
        self.calls: list[tuple[str, dict]] = []

    def add(
        self,
        url_part: str,
        response: FakeResponse | Exception,
        match: Callable[[dict], bool] | None = None,
    ):
        self.routes.append((url_part, match, response))

    def calls_to(self, url_part: str) -> list[dict]:
        return [params for url, params in self.calls if url_part in url]

    def get(self, url: str, params: dict | None = None, timeout: Any = None):
        params = dict(params or {})
        self.calls.append((url, params))
        for url_part, match, response in reversed(self.routes):
            if url_part not in url:
                continue
            if match is not None and not match(params):
                continue
            if isinstance(response, Exception):
                raise response
            return response
        return FakeResponse(status=404, body="not found")


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def google_provider(fake_session):
    return GoogleBooksProvider(
        fake_session,  # type: ignore[arg-type]
        search_timeout=8.0,
        lookup_timeout=5.0,
        base_url=GOOGLE_URL,
        api_key="test-key",
    )


@pytest.fixture
def openlibrary_provider(fake_session):
    return OpenLibraryProvider(
        fake_session,  # type: ignore[arg-type]
        search_timeout=8.0,
        lookup_timeout=5.0,
        base_url=OPENLIBRARY_URL,
        covers_url="https://covers.test",
    )


# ============================================================
# Canned provider payloads
# ============================================================


def google_volume(
    volume_id: str = "gb1",
    title: str = "Project Hail Mary",
    authors: list[str] | None = None,
    **volume_info: Any,
) -> dict[str, Any]:
    return {
        "id": volume_id,
        "volumeInfo": {
            "title": title,
            "authors": authors if authors is not None else ["Andy Weir"],
            "publisher": "Ballantine Books",
            "publishedDate": "2021-05-04",
            "industryIdentifiers": [
                {"type": "ISBN_13", "identifier": "9780593135204"},
                {"type": "ISBN_10", "identifier": "0593135202"},
            ],
            "pageCount": 496,
            "categories": ["Fiction / Science Fiction / General"],
            "language": "en",
            "imageLinks": {"thumbnail": "http://books.google.com/cover.jpg"},
            **volume_info,
        },
        "saleInfo": {},
        "accessInfo": {},
    }


def openlibrary_doc(
    key: str = "/works/OL1W",
    title: str = "Project Hail Mary",
    authors: list[str] | None = None,
    year: int | None = 2021,
    **fields: Any,
) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "key": key,
        "title": title,
        "author_name": authors if authors is not None else ["Andy Weir"],
        "edition_count": 12,
        "subject": ["Science fiction", "Space flight"],
        **fields,
    }
    if year is not None:
        doc["first_publish_year"] = year
    return doc


@pytest.fixture
def make_book() -> Callable[..., CanonicalBook]:
    def _make(**overrides: Any) -> CanonicalBook:
        data: dict[str, Any] = {
            "id": "book-1",
            "title": "Project Hail Mary",
            "authors": ["Andy Weir"],
            "source": "google_books",
            "sources": ["google_books"],
        }
        data.update(overrides)
        return CanonicalBook(**data)

    return _make
