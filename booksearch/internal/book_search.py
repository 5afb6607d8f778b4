"""
Book search across Google Books and OpenLibrary.

A search plans the query, fans it out to both providers, backfills original
publication years on the Google Books records, reconciles both lists into one
ranked list and optionally hands the results to an audiobook enricher.
"""

from aiohttp import ClientSession

from booksearch.internal import editions
from booksearch.internal.backfill import backfill_book, backfill_books
from booksearch.internal.enrichment import (
    AudiobookEnricher,
    NullAudiobookEnricher,
    enrich_books,
)
from booksearch.internal.env_settings import Settings
from booksearch.internal.exceptions import ProviderError, SearchValidationError
from booksearch.internal.models import (
    BookResponse,
    EditionsResponse,
    EnrichmentMode,
    ProviderResult,
    SearchResponse,
    SearchSource,
    SearchType,
)
from booksearch.internal.query_planner import QueryPlanner
from booksearch.internal.ranking.relevance import RelevanceRanker
from booksearch.internal.reconcile import Reconciler
from booksearch.internal.sources.google_books_api import GoogleBooksProvider
from booksearch.internal.sources.openlibrary_api import OpenLibraryProvider
from booksearch.internal.sources.unified_search import fan_out
from booksearch.util.log import logger

NO_RESULTS_MESSAGE = "No results found from either Google Books or Open Library"


def determine_source(
    google: ProviderResult, openlibrary: ProviderResult, has_books: bool
) -> SearchSource:
    if not has_books:
        return "no_results"
    if google.success and openlibrary.success:
        return "merged_apis"
    if google.success:
        return "google_books_enhanced"
    return "open_library_primary"


class BookSearchService:
    def __init__(
        self,
        google_books: GoogleBooksProvider,
        openlibrary: OpenLibraryProvider,
        planner: QueryPlanner | None = None,
        ranker: RelevanceRanker | None = None,
        enricher: AudiobookEnricher | None = None,
        max_results_cap: int = 40,
    ):
        self.google_books = google_books
        self.openlibrary = openlibrary
        self.planner = planner or QueryPlanner()
        self.reconciler = Reconciler(ranker or RelevanceRanker())
        self.enricher = enricher or NullAudiobookEnricher()
        self.max_results_cap = max_results_cap

    @classmethod
    def from_settings(
        cls,
        client_session: ClientSession,
        enricher: AudiobookEnricher | None = None,
    ) -> "BookSearchService":
        settings = Settings()
        providers = settings.providers
        return cls(
            google_books=GoogleBooksProvider(
                client_session,
                search_timeout=providers.search_timeout,
                lookup_timeout=providers.lookup_timeout,
                base_url=providers.google_books_url,
                api_key=settings.google_books_api_key,
            ),
            openlibrary=OpenLibraryProvider(
                client_session,
                search_timeout=providers.search_timeout,
                lookup_timeout=providers.lookup_timeout,
                base_url=providers.openlibrary_url,
                covers_url=providers.openlibrary_covers_url,
            ),
            ranker=RelevanceRanker(settings.ranking.common_surnames),
            enricher=enricher,
            max_results_cap=settings.app.max_results_cap,
        )

    async def search(
        self,
        query: str,
        search_type: SearchType | str = SearchType.general,
        max_results: int = 10,
        enrichment_mode: EnrichmentMode = EnrichmentMode.none,
    ) -> SearchResponse:
        """
        Search both providers and return one ranked, deduplicated list.

        A provider failing is not an error: the response is built from whatever
        the other provider returned.

        Raises:
            SearchValidationError: empty query or unknown search type
        """
        if not query or not query.strip():
            raise SearchValidationError("Search query is required")
        try:
            search_type = SearchType(search_type)
        except ValueError as e:
            raise SearchValidationError(
                f"Invalid search type: {search_type}. "
                f"Must be one of: {', '.join(t.value for t in SearchType)}"
            ) from e
        max_results = max(1, min(max_results, self.max_results_cap))

        logger.info(
            "Starting book search",
            query=query,
            search_type=search_type.value,
            max_results=max_results,
        )

        intent = self.planner.plan(query, search_type)
        results = await fan_out([self.google_books, self.openlibrary], intent, max_results)
        google = results[self.google_books.name]
        openlibrary = results[self.openlibrary.name]

        google_books = await backfill_books(google.books, self.openlibrary)
        books = self.reconciler.reconcile(google_books, openlibrary.books, query)
        books = books[:max_results]
        books = await enrich_books(books, enrichment_mode, self.enricher)

        source = determine_source(google, openlibrary, bool(books))
        both_succeeded = google.success and openlibrary.success

        logger.info(
            "Book search complete",
            query=query,
            source=source,
            results=len(books),
            google_books_count=len(google.books),
            open_library_count=len(openlibrary.books),
        )
        return SearchResponse(
            success=True,
            total_items=max(google.total_items, openlibrary.total_items),
            books=books,
            source=source,
            sources=["google_books", "open_library"] if both_succeeded else None,
            message=None if books else NO_RESULTS_MESSAGE,
        )

    async def get_editions(
        self,
        work_id: str,
        limit: int = 20,
        english_only: bool = False,
        original_title: str = "",
    ) -> EditionsResponse:
        """
        Raises:
            ValueError: work_id is empty
        """
        return await editions.get_editions(
            self.openlibrary,
            work_id,
            limit=limit,
            english_only=english_only,
            original_title=original_title,
        )

    async def get_book(self, volume_id: str) -> BookResponse:
        """
        A single Google Books volume, backfilled with its original publication year.

        Raises:
            SearchValidationError: volume_id is empty
            ProviderError: Google Books failed for any reason but an unknown volume
        """
        if not volume_id or not volume_id.strip():
            raise SearchValidationError("Book ID is required")

        try:
            book = await self.google_books.get_volume(volume_id.strip())
        except ProviderError as e:
            if e.status == 404:
                return BookResponse(success=False, message="Book not found")
            raise

        if book is None:
            return BookResponse(success=False, message="Book not found")

        return BookResponse(success=True, book=await backfill_book(book, self.openlibrary))
