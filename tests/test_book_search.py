"""Tests for book_search.py: end-to-end search orchestration over fake providers."""

import asyncio

import pytest
from conftest import GOOGLE_URL, FakeResponse, google_volume, openlibrary_doc

from booksearch.internal.book_search import NO_RESULTS_MESSAGE, BookSearchService
from booksearch.internal.exceptions import SearchValidationError
from booksearch.internal.models import EnrichmentMode
from booksearch.internal.ranking.relevance import RelevanceRanker
from booksearch.internal.sources.openlibrary_api import LOOKUP_FIELDS, SEARCH_FIELDS


def _is_search(params):
    return params.get("fields") == SEARCH_FIELDS


def _is_lookup(params):
    return params.get("fields") == LOOKUP_FIELDS


@pytest.fixture
def service(google_provider, openlibrary_provider):
    return BookSearchService(
        google_provider,
        openlibrary_provider,
        ranker=RelevanceRanker(common_surnames=[]),
    )


class TestSearch:
    async def test_merged_results(self, fake_session, service):
        fake_session.add(
            GOOGLE_URL,
            FakeResponse(
                payload={
                    "totalItems": 2,
                    "items": [
                        google_volume("gb1", title="Project Hail Mary"),
                        google_volume("gb2", title="The Martian"),
                    ],
                }
            ),
        )
        fake_session.add(
            "/search.json",
            FakeResponse(
                payload={
                    "numFound": 5,
                    "docs": [
                        openlibrary_doc("/works/OL1W", "Project Hail Mary"),
                        openlibrary_doc("/works/OL3W", "Artemis", year=2017),
                    ],
                }
            ),
            match=_is_search,
        )
        fake_session.add(
            "/search.json",
            FakeResponse(payload={"docs": [openlibrary_doc(year=2021)]}),
            match=_is_lookup,
        )

        response = await service.search("project hail mary weir", "general", 10)

        assert response.success
        assert response.source == "merged_apis"
        assert response.sources == ["google_books", "open_library"]
        assert response.total_items == 5
        assert response.message is None
        titles = [b.title for b in response.books]
        assert titles[0] == "Project Hail Mary"
        assert sorted(titles) == ["Artemis", "Project Hail Mary", "The Martian"]

        top = response.books[0]
        assert top.sources == ["google_books", "open_library"]
        assert top.original_published_date == "2021"
        assert top.open_library_key == "/works/OL1W"
        scores = [b.relevance_score for b in response.books]
        assert scores == sorted(scores, reverse=True)

    async def test_google_timeout_open_library_answers(self, fake_session, service):
        fake_session.add(GOOGLE_URL, asyncio.TimeoutError())
        fake_session.add(
            "/search.json",
            FakeResponse(
                payload={
                    "numFound": 3,
                    "docs": [
                        openlibrary_doc(f"/works/OL{i}W", title)
                        for i, title in enumerate(["Dune", "Dune Messiah", "Children of Dune"])
                    ],
                }
            ),
        )

        response = await service.search("dune", max_results=10)

        assert response.success
        assert response.source == "open_library_primary"
        assert response.sources is None
        assert len(response.books) == 3
        assert response.books[0].title == "Dune"

    async def test_open_library_down(self, fake_session, service):
        fake_session.add(
            GOOGLE_URL, FakeResponse(payload={"totalItems": 1, "items": [google_volume()]})
        )
        fake_session.add("/search.json", FakeResponse(status=503))

        response = await service.search("project hail mary")

        assert response.source == "google_books_enhanced"
        assert len(response.books) == 1
        # backfill failed as well, the record is kept as Google reported it
        assert response.books[0].original_published_date is None

    async def test_no_results(self, fake_session, service):
        fake_session.add(GOOGLE_URL, FakeResponse(payload={"totalItems": 0}))
        fake_session.add("/search.json", FakeResponse(payload={"docs": []}))

        response = await service.search("zzzxqy")

        assert response.success
        assert response.source == "no_results"
        assert response.books == []
        assert response.message == NO_RESULTS_MESSAGE

    async def test_both_providers_down(self, fake_session, service):
        fake_session.add(GOOGLE_URL, FakeResponse(status=429))
        fake_session.add("/search.json", FakeResponse(status=500))

        response = await service.search("dune")

        assert response.success
        assert response.source == "no_results"
        assert response.total_items == 0

    async def test_truncated_to_max_results(self, fake_session, service):
        fake_session.add(
            GOOGLE_URL,
            FakeResponse(
                payload={
                    "items": [google_volume(f"gb{i}", title=f"Book {i}") for i in range(5)]
                }
            ),
        )
        fake_session.add("/search.json", FakeResponse(payload={"docs": []}))

        response = await service.search("book", max_results=2)

        assert len(response.books) == 2

    async def test_enrichment_top(self, fake_session, google_provider, openlibrary_provider):
        fake_session.add(GOOGLE_URL, FakeResponse(payload={"items": [google_volume()]}))
        fake_session.add("/search.json", FakeResponse(payload={"docs": []}))

        class Enricher:
            async def enrich(self, book):
                return book.model_copy(update={"audiobook_data": {"hasAudiobook": False}})

        service = BookSearchService(
            google_provider, openlibrary_provider, enricher=Enricher()
        )
        response = await service.search(
            "project hail mary", enrichment_mode=EnrichmentMode.top
        )
        assert response.books[0].audiobook_data == {"hasAudiobook": False}

    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query(self, service, query):
        with pytest.raises(SearchValidationError):
            await service.search(query)

    async def test_unknown_search_type(self, service):
        with pytest.raises(SearchValidationError, match="Invalid search type"):
            await service.search("dune", "magazine")


class TestGetBook:
    async def test_found_and_backfilled(self, fake_session, service):
        fake_session.add(f"{GOOGLE_URL}/gb1", FakeResponse(payload=google_volume()))
        fake_session.add(
            "/search.json", FakeResponse(payload={"docs": [openlibrary_doc(year=2021)]})
        )

        response = await service.get_book("gb1")

        assert response.success
        assert response.book.id == "gb1"
        assert response.book.original_published_date == "2021"

    async def test_not_found(self, fake_session, service):
        response = await service.get_book("missing")
        assert not response.success
        assert response.message == "Book not found"


class TestGetEditions:
    async def test_delegates_to_openlibrary(self, fake_session, service):
        fake_session.add(
            "/works/OL1W/editions.json",
            FakeResponse(payload={"entries": [{"key": "/books/OL1M", "title": "Dune"}]}),
        )
        response = await service.get_editions("OL1W")
        assert response.success
        assert [e.id for e in response.editions] == ["/books/OL1M"]
