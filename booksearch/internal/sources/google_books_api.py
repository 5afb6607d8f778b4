"""
Google Books API integration for book search and single volume lookups.
"""

from typing import TYPE_CHECKING, Any, TypedDict

from aiohttp import ClientResponse, ClientSession
from pydantic import ValidationError
from typing_extensions import override

from booksearch.internal.exceptions import ProviderRateLimited, ProviderUnavailable
from booksearch.internal.models import CanonicalBook, ProviderResult
from booksearch.internal.sources.abstract import BookProvider
from booksearch.internal.sources.categories import normalize_categories
from booksearch.internal.sources.isbn_utils import normalize_isbn
from booksearch.util.log import logger

if TYPE_CHECKING:
    from booksearch.internal.query_planner import SearchIntent

GOOGLE_BOOKS_MAX_RESULTS = 40  # API limit
MAX_CATEGORIES = 10

# best resolution first
_IMAGE_SIZES = (
    "extraLarge",
    "large",
    "medium",
    "small",
    "thumbnail",
    "smallThumbnail",
)


class GoogleBooksVolumeInfo(TypedDict, total=False):
    """Simplified Google Books volumeInfo object."""

    title: str
    subtitle: str
    authors: list[str]
    publisher: str
    publishedDate: str
    description: str
    industryIdentifiers: list[dict[str, str]]
    pageCount: int
    categories: list[str]
    averageRating: float
    ratingsCount: int
    language: str
    imageLinks: dict[str, str]
    previewLink: str
    infoLink: str
    printType: str


def _extract_isbn(identifiers: list[dict[str, str]]) -> tuple[str | None, str | None]:
    """Extract ISBN-13 and ISBN-10 from industryIdentifiers."""
    isbn_13 = None
    isbn_10 = None

    for identifier in identifiers:
        value = normalize_isbn(identifier.get("identifier", ""))
        if not value:
            continue
        if identifier.get("type") == "ISBN_13" and isbn_13 is None:
            isbn_13 = value
        elif identifier.get("type") == "ISBN_10" and isbn_10 is None:
            isbn_10 = value

    return isbn_13, isbn_10


def _extract_cover_url(image_links: dict[str, str] | None) -> str | None:
    """Pick the highest resolution cover and upgrade it to https."""
    if not image_links:
        return None
    for size in _IMAGE_SIZES:
        url = image_links.get(size)
        if url:
            if url.startswith("http:"):
                url = "https:" + url[len("http:") :]
            return url
    return None


def parse_volume(item: dict[str, Any]) -> CanonicalBook | None:
    """Convert a Google Books volume item into a canonical book. Items without a title are dropped."""
    volume_info: GoogleBooksVolumeInfo = item.get("volumeInfo") or {}
    sale_info: dict[str, Any] = item.get("saleInfo") or {}

    title = volume_info.get("title")
    if not title:
        return None

    isbn_13, isbn_10 = _extract_isbn(volume_info.get("industryIdentifiers", []))
    page_count = volume_info.get("pageCount")

    return CanonicalBook(
        id=item.get("id", ""),
        title=title,
        subtitle=volume_info.get("subtitle"),
        authors=volume_info.get("authors", []),
        publisher=volume_info.get("publisher"),
        published_date=volume_info.get("publishedDate"),
        edition_published_date=volume_info.get("publishedDate"),
        description=volume_info.get("description"),
        isbn_13=isbn_13,
        isbn_10=isbn_10,
        page_count=page_count if page_count and page_count > 0 else None,
        categories=normalize_categories(
            (volume_info.get("categories") or [])[:MAX_CATEGORIES],
            split_ampersand=False,
        ),
        language=volume_info.get("language"),
        thumbnail=_extract_cover_url(volume_info.get("imageLinks")),
        info_link=volume_info.get("infoLink"),
        preview_link=volume_info.get("previewLink"),
        buy_link=sale_info.get("buyLink"),
        average_rating=volume_info.get("averageRating"),
        ratings_count=volume_info.get("ratingsCount"),
        source="google_books",
        sources=["google_books"],
        raw_data={"google_books": item},
    )


class GoogleBooksProvider(BookProvider):
    name = "google_books"

    def __init__(
        self,
        client_session: ClientSession,
        search_timeout: float,
        lookup_timeout: float,
        base_url: str = "https://www.googleapis.com/books/v1/volumes",
        api_key: str | None = None,
    ):
        super().__init__(client_session, search_timeout, lookup_timeout)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def _params(self, params: dict[str, Any]) -> dict[str, Any]:
        if self.api_key:
            params["key"] = self.api_key
        return params

    @override
    async def _raise_for_status(self, response: ClientResponse):
        # Google reports an exhausted quota or a bad key as 403
        if response.status == 403:
            raise ProviderRateLimited(
                self.name, "quota exceeded or invalid API key", response.status
            )
        await super()._raise_for_status(response)

    @override
    async def search(self, intent: "SearchIntent", max_results: int) -> ProviderResult:
        query = intent.google_books_query()
        params = self._params(
            {
                "q": query,
                "maxResults": min(max_results, GOOGLE_BOOKS_MAX_RESULTS),
                "printType": "books",
                "projection": "full",
            }
        )

        logger.debug("Searching Google Books", query=query, max_results=max_results)
        data = await self._get_json(self.base_url, params, self.search_timeout)

        books = self._parse_items(data.get("items"), parse_volume)
        logger.info(
            "Google Books search complete",
            query=query,
            results_found=len(books),
        )
        return ProviderResult(
            provider=self.name,
            success=True,
            books=books,
            total_items=data.get("totalItems") or 0,
        )

    async def get_volume(self, volume_id: str) -> CanonicalBook | None:
        """Lookup a specific volume by its Google Books id."""
        logger.debug("Fetching Google Books volume", volume_id=volume_id)
        data = await self._get_json(
            f"{self.base_url}/{volume_id}", self._params({}), self.lookup_timeout
        )
        try:
            return parse_volume(data)
        except (ValidationError, TypeError, AttributeError) as e:
            raise ProviderUnavailable(self.name, "malformed volume") from e
