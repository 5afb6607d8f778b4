"""
OpenLibrary API integration for book search, original publication lookups
and edition listings.
"""

import re
from typing import TYPE_CHECKING, Any, TypedDict

from aiohttp import ClientSession
from typing_extensions import override

from booksearch.internal.exceptions import ProviderError, WorkNotFound
from booksearch.internal.models import (
    CanonicalBook,
    EditionRecord,
    OpenLibraryData,
    ProviderResult,
)
from booksearch.internal.sources.abstract import BookProvider
from booksearch.internal.sources.categories import normalize_categories
from booksearch.internal.sources.isbn_utils import normalize_isbn, split_isbns
from booksearch.util.log import logger

if TYPE_CHECKING:
    from booksearch.internal.query_planner import SearchIntent

SEARCH_FIELDS = (
    "key,title,author_name,first_publish_year,edition_count,subject,isbn,"
    "number_of_pages_median,publisher,cover_i,language"
)
LOOKUP_FIELDS = "key,title,author_name,first_publish_year,edition_count,subject,isbn"

MAX_SEARCH_SUBJECTS = 10
MAX_EDITION_SUBJECTS = 15

_YEAR = re.compile(r"\d{4}")


class OpenLibraryDoc(TypedDict, total=False):
    """Simplified OpenLibrary search result document."""

    key: str
    title: str
    author_name: list[str]
    first_publish_year: int
    edition_count: int
    subject: list[str]
    isbn: list[str]
    number_of_pages_median: int
    publisher: list[str]
    cover_i: int
    language: list[str]


def _language_tag(language: Any) -> str | None:
    if isinstance(language, dict):
        key = language.get("key")
        if isinstance(key, str):
            return key.removeprefix("/languages/").strip()
        return None
    if isinstance(language, str):
        return language.strip()
    return None


def _positive_int(value: Any) -> int | None:
    if isinstance(value, int) and value > 0:
        return value
    return None


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


class OpenLibraryProvider(BookProvider):
    name = "open_library"

    def __init__(
        self,
        client_session: ClientSession,
        search_timeout: float,
        lookup_timeout: float,
        base_url: str = "https://openlibrary.org",
        covers_url: str = "https://covers.openlibrary.org",
    ):
        super().__init__(client_session, search_timeout, lookup_timeout)
        self.base_url = base_url.rstrip("/")
        self.covers_url = covers_url.rstrip("/")

    def _cover_url(self, cover_id: int | None) -> str | None:
        """Generate the large cover URL from an OpenLibrary cover id."""
        if not cover_id or cover_id < 0:
            return None
        return f"{self.covers_url}/b/id/{cover_id}-L.jpg"

    def parse_doc(self, doc: OpenLibraryDoc) -> CanonicalBook | None:
        """Convert a search.json document into a canonical book."""
        title = doc.get("title")
        if not title:
            return None

        isbn_13, isbn_10 = split_isbns(doc.get("isbn", []))
        first_year = doc.get("first_publish_year")
        year = str(first_year) if first_year else None
        subjects = (doc.get("subject") or [])[:MAX_SEARCH_SUBJECTS]
        publishers = doc.get("publisher") or []
        languages = doc.get("language") or []
        key = doc.get("key", "")

        return CanonicalBook(
            id=key,
            title=title,
            authors=doc.get("author_name", []),
            publisher=publishers[0] if publishers else None,
            published_date=year,
            edition_published_date=year,
            original_published_date=year,
            isbn_13=isbn_13,
            isbn_10=isbn_10,
            page_count=_positive_int(doc.get("number_of_pages_median")),
            categories=normalize_categories(subjects, split_ampersand=False),
            language=languages[0] if languages else "en",
            thumbnail=self._cover_url(doc.get("cover_i")),
            info_link=f"{self.base_url}{key}" if key else None,
            source="open_library",
            sources=["open_library"],
            open_library_key=key or None,
            open_library_data=OpenLibraryData(
                edition_count=doc.get("edition_count"),
                first_publish_year=first_year,
                subjects=subjects,
                raw_subjects=subjects,
            ),
        )

    @override
    async def search(self, intent: "SearchIntent", max_results: int) -> ProviderResult:
        params: dict[str, Any] = {
            # fetch extra, the search endpoint returns many weak matches
            "limit": min(max_results * 2, 20),
            "fields": SEARCH_FIELDS,
            **intent.openlibrary_params(),
        }

        logger.debug("Searching OpenLibrary", params=params)
        data = await self._get_json(
            f"{self.base_url}/search.json", params, self.search_timeout
        )

        books = self._parse_items(data.get("docs"), self.parse_doc)[:max_results]

        logger.info(
            "OpenLibrary search complete",
            params=params,
            results_found=len(books),
        )
        return ProviderResult(
            provider=self.name,
            success=True,
            books=books,
            total_items=data.get("numFound") or len(books),
        )

    async def lookup_works(
        self,
        *,
        title: str | None = None,
        author: str | None = None,
        isbn: str | None = None,
        limit: int = 10,
    ) -> list[OpenLibraryDoc]:
        """Raw search.json documents for a title/author or ISBN lookup."""
        params: dict[str, Any] = {"limit": limit, "fields": LOOKUP_FIELDS}
        if isbn:
            params["isbn"] = normalize_isbn(isbn)
        if title:
            params["title"] = title
        if author:
            params["author"] = author

        data = await self._get_json(
            f"{self.base_url}/search.json", params, self.lookup_timeout
        )
        return data.get("docs") or []

    def parse_edition(self, edition: dict[str, Any]) -> EditionRecord | None:
        """Convert a raw /works/<id>/editions.json entry into an edition record."""
        title = edition.get("title")
        if not title:
            return None

        # OpenLibrary uses -1 as a placeholder cover id
        covers = [
            c for c in edition.get("covers") or [] if isinstance(c, int) and c > 0
        ]
        isbn_13_list = edition.get("isbn_13") or []
        isbn_10_list = edition.get("isbn_10") or []
        publishers = edition.get("publishers") or []

        published_date = None
        publish_date = edition.get("publish_date")
        if isinstance(publish_date, str) and publish_date:
            year = _YEAR.search(publish_date)
            published_date = year.group(0) if year else publish_date

        description = edition.get("description")
        if isinstance(description, dict):
            description = description.get("value")

        languages = [
            tag
            for tag in map(_language_tag, edition.get("languages") or [])
            if tag is not None
        ]
        subjects = (edition.get("subjects") or [])[:MAX_EDITION_SUBJECTS]
        key = edition.get("key", "")

        return EditionRecord(
            id=key,
            title=title,
            subtitle=edition.get("subtitle"),
            authors=[
                author.get("name") or "Unknown Author"
                for author in edition.get("authors") or []
                if isinstance(author, dict)
            ],
            publisher=publishers[0] if publishers else None,
            published_date=published_date,
            isbn_13=normalize_isbn(isbn_13_list[0]) if isbn_13_list else None,
            isbn_10=normalize_isbn(isbn_10_list[0]) if isbn_10_list else None,
            page_count=_positive_int(edition.get("number_of_pages")),
            language=languages[0] if languages else "en",
            languages=languages,
            thumbnail=self._cover_url(covers[0]) if covers else None,
            format=_str_or_none(edition.get("physical_format")),
            dimensions=_str_or_none(edition.get("physical_dimensions")),
            weight=_str_or_none(edition.get("weight")),
            description=description if isinstance(description, str) else None,
            categories=normalize_categories(subjects, split_ampersand=False),
            info_link=f"{self.base_url}{key}" if key else None,
            open_library_key=key or None,
        )

    async def fetch_editions(
        self, work_key: str, limit: int
    ) -> tuple[list[EditionRecord], int]:
        """
        Editions of a work and the provider's total edition count.

        Raises:
            WorkNotFound: OpenLibrary does not know the work.
        """
        try:
            data = await self._get_json(
                f"{self.base_url}{work_key}/editions.json",
                {"limit": limit, "offset": 0},
                self.search_timeout,
            )
        except ProviderError as e:
            if e.status == 404:
                raise WorkNotFound(self.name, f"unknown work {work_key}", 404) from e
            raise

        editions = self._parse_items(data.get("entries"), self.parse_edition)
        return editions, data.get("size") or len(editions)
