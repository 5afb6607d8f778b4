"""Tests for sources/google_books_api.py: Google Books adapter."""

import asyncio

import aiohttp
import pytest
from conftest import GOOGLE_URL, FakeResponse, google_volume

from booksearch.internal.exceptions import (
    ProviderBadRequest,
    ProviderRateLimited,
    ProviderUnavailable,
)
from booksearch.internal.query_planner import QueryPlanner
from booksearch.internal.sources.google_books_api import MAX_CATEGORIES, parse_volume


@pytest.fixture
def intent():
    return QueryPlanner().plan("Project Hail Mary", "title")


class TestParseVolume:
    def test_full_volume(self):
        book = parse_volume(google_volume())
        assert book is not None
        assert book.id == "gb1"
        assert book.isbn_13 == "9780593135204"
        assert book.isbn_10 == "0593135202"
        assert book.published_date == book.edition_published_date == "2021-05-04"
        assert book.original_published_date is None
        assert book.thumbnail == "https://books.google.com/cover.jpg"
        assert book.categories == ["Fiction", "Science Fiction", "General"]
        assert book.source == "google_books"
        assert book.raw_data == {"google_books": google_volume()}

    def test_best_cover_wins(self):
        item = google_volume(
            imageLinks={
                "smallThumbnail": "https://img.test/s.jpg",
                "large": "https://img.test/l.jpg",
            }
        )
        assert parse_volume(item).thumbnail == "https://img.test/l.jpg"

    def test_missing_title_dropped(self):
        assert parse_volume({"id": "x", "volumeInfo": {}}) is None

    def test_non_positive_page_count(self):
        assert parse_volume(google_volume(pageCount=0)).page_count is None

    def test_categories_normalized(self):
        item = google_volume(categories=["Sci-Fi", "science fiction", "juvenile fiction"])
        assert parse_volume(item).categories == ["Science Fiction", "Children's Fiction"]

    def test_categories_truncated(self):
        item = google_volume(categories=[f"Topic {i:02d}" for i in range(30)])
        categories = parse_volume(item).categories
        assert len(categories) == MAX_CATEGORIES
        assert categories[-1] == "Topic 09"


class TestSearch:
    async def test_success(self, fake_session, google_provider, intent):
        fake_session.add(
            GOOGLE_URL,
            FakeResponse(
                payload={
                    "totalItems": 120,
                    "items": [google_volume(), {"id": "untitled", "volumeInfo": {}}],
                }
            ),
        )

        result = await google_provider.search(intent, max_results=10)

        assert result.success
        assert result.total_items == 120
        assert [b.id for b in result.books] == ["gb1"]
        params = fake_session.calls_to(GOOGLE_URL)[0]
        assert params["q"] == "intitle:Project Hail Mary"
        assert params["maxResults"] == 10
        assert params["key"] == "test-key"

    async def test_zero_results_is_success(self, fake_session, google_provider, intent):
        fake_session.add(GOOGLE_URL, FakeResponse(payload={"totalItems": 0}))
        result = await google_provider.search(intent, max_results=10)
        assert result.success
        assert result.books == []

    async def test_max_results_capped(self, fake_session, google_provider, intent):
        fake_session.add(GOOGLE_URL, FakeResponse(payload={}))
        await google_provider.search(intent, max_results=100)
        assert fake_session.calls_to(GOOGLE_URL)[0]["maxResults"] == 40

    @pytest.mark.parametrize(
        ("status", "error"),
        [
            (429, ProviderRateLimited),
            (403, ProviderRateLimited),
            (400, ProviderBadRequest),
            (500, ProviderUnavailable),
            (503, ProviderUnavailable),
        ],
    )
    async def test_status_classification(
        self, fake_session, google_provider, intent, status, error
    ):
        fake_session.add(GOOGLE_URL, FakeResponse(status=status, body="nope"))
        with pytest.raises(error) as exc_info:
            await google_provider.search(intent, max_results=10)
        assert exc_info.value.status == status
        assert exc_info.value.provider == "google_books"

    async def test_timeout(self, fake_session, google_provider, intent):
        fake_session.add(GOOGLE_URL, asyncio.TimeoutError())
        with pytest.raises(ProviderUnavailable, match="timed out"):
            await google_provider.search(intent, max_results=10)

    async def test_connection_error(self, fake_session, google_provider, intent):
        fake_session.add(GOOGLE_URL, aiohttp.ClientConnectionError("refused"))
        with pytest.raises(ProviderUnavailable):
            await google_provider.search(intent, max_results=10)

    async def test_malformed_body(self, fake_session, google_provider, intent):
        fake_session.add(GOOGLE_URL, FakeResponse(payload=ValueError("bad json")))
        with pytest.raises(ProviderUnavailable, match="malformed"):
            await google_provider.search(intent, max_results=10)

    async def test_non_object_body(self, fake_session, google_provider, intent):
        fake_session.add(GOOGLE_URL, FakeResponse(payload=["not", "an", "object"]))
        with pytest.raises(ProviderUnavailable, match="malformed"):
            await google_provider.search(intent, max_results=10)

    async def test_malformed_item_skipped(self, fake_session, google_provider, intent):
        broken = google_volume("broken")
        broken["volumeInfo"]["authors"] = None
        fake_session.add(
            GOOGLE_URL,
            FakeResponse(payload={"items": [broken, "junk", google_volume()]}),
        )

        result = await google_provider.search(intent, max_results=10)

        assert result.success
        assert [b.id for b in result.books] == ["gb1"]

    async def test_items_not_a_list(self, fake_session, google_provider, intent):
        fake_session.add(GOOGLE_URL, FakeResponse(payload={"items": {"id": "gb1"}}))
        with pytest.raises(ProviderUnavailable, match="malformed"):
            await google_provider.search(intent, max_results=10)


class TestGetVolume:
    async def test_lookup(self, fake_session, google_provider):
        fake_session.add(f"{GOOGLE_URL}/gb1", FakeResponse(payload=google_volume()))
        book = await google_provider.get_volume("gb1")
        assert book is not None
        assert book.title == "Project Hail Mary"

    async def test_malformed_volume(self, fake_session, google_provider):
        item = google_volume()
        item["volumeInfo"]["authors"] = None
        fake_session.add(f"{GOOGLE_URL}/gb1", FakeResponse(payload=item))
        with pytest.raises(ProviderUnavailable, match="malformed"):
            await google_provider.get_volume("gb1")
