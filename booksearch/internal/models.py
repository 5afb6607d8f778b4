from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseRecord(BaseModel):
    """Records are serialized with camelCase keys and never mutated in place."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SearchType(str, Enum):
    general = "general"
    isbn = "isbn"
    title = "title"
    author = "author"
    subject = "subject"


class EnrichmentMode(str, Enum):
    none = "none"
    top = "top"
    all = "all"


ProviderName = Literal["google_books", "open_library"]
SearchSource = Literal[
    "merged_apis",
    "google_books_enhanced",
    "open_library_primary",
    "no_results",
]


class EditionVariant(BaseRecord):
    """Snapshot of one printing, kept when merged records disagree on core facts."""

    title: Optional[str] = None
    publisher: Optional[str] = None
    published_date: Optional[str] = None
    isbn_13: Optional[str] = None
    isbn_10: Optional[str] = None
    page_count: Optional[int] = None
    thumbnail: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    is_original: bool = False

    @property
    def key(self) -> str:
        return "|".join(
            [
                (self.title or "").strip().lower(),
                (self.publisher or "").strip().lower(),
                (self.published_date or "").strip().lower(),
                (self.isbn_13 or "").strip().upper(),
                (self.isbn_10 or "").strip().upper(),
            ]
        )

    @property
    def has_meaningful_data(self) -> bool:
        return any(
            value and value.strip()
            for value in (
                self.title,
                self.publisher,
                self.published_date,
                self.isbn_13,
                self.isbn_10,
            )
        )


class OpenLibraryData(BaseRecord):
    edition_count: Optional[int] = None
    first_publish_year: Optional[int] = None
    subjects: list[str] = []
    raw_subjects: list[str] = []


class GoogleAudiobookHints(BaseRecord):
    text_to_speech_allowed: bool
    marked_as_audiobook: bool
    has_audio_links: bool
    confidence: Literal["high", "medium", "low"]
    source: str = "google_books_api"


class CanonicalBook(BaseRecord):
    """Provider-agnostic book record produced by the adapters and merged during reconciliation."""

    id: str
    title: str
    subtitle: Optional[str] = None
    authors: list[str] = []
    publisher: Optional[str] = None
    published_date: Optional[str] = None
    edition_published_date: Optional[str] = None
    original_published_date: Optional[str] = None
    description: Optional[str] = None
    isbn_13: Optional[str] = None
    isbn_10: Optional[str] = None
    page_count: Optional[int] = None
    categories: list[str] = []
    language: Optional[str] = None

    thumbnail: Optional[str] = None
    info_link: Optional[str] = None
    preview_link: Optional[str] = None
    buy_link: Optional[str] = None

    average_rating: Optional[float] = None
    ratings_count: Optional[int] = None

    source: str
    sources: list[str] = []
    primary_source: Optional[str] = None
    relevance_score: Optional[float] = None
    edition_variants: list[EditionVariant] = []

    open_library_key: Optional[str] = None
    open_library_data: Optional[OpenLibraryData] = None

    google_audiobook_hints: Optional[GoogleAudiobookHints] = None
    audiobook_data: Optional[dict[str, Any]] = None

    raw_data: Optional[dict[str, Any]] = None

    @property
    def contributing_sources(self) -> list[str]:
        return self.sources or [self.source]


class EditionRecord(BaseRecord):
    id: str
    title: str
    subtitle: Optional[str] = None
    authors: list[str] = []
    publisher: Optional[str] = None
    published_date: Optional[str] = None
    isbn_13: Optional[str] = None
    isbn_10: Optional[str] = None
    page_count: Optional[int] = None
    language: Optional[str] = None
    languages: list[str] = []
    thumbnail: Optional[str] = None
    format: Optional[str] = None
    dimensions: Optional[str] = None
    weight: Optional[str] = None
    description: Optional[str] = None
    categories: list[str] = []
    info_link: Optional[str] = None
    source: str = "open_library_edition"
    open_library_key: Optional[str] = None

    @property
    def year(self) -> int | None:
        if self.published_date and self.published_date.isdigit():
            return int(self.published_date)
        return None


class ProviderResult(BaseModel):
    provider: ProviderName
    success: bool
    books: list[CanonicalBook] = []
    total_items: int = 0
    error: str | None = None


class SearchResponse(BaseRecord):
    success: bool
    total_items: int
    books: list[CanonicalBook]
    source: SearchSource
    sources: Optional[list[str]] = None
    message: Optional[str] = None


class EditionsResponse(BaseRecord):
    success: bool
    total_editions: int
    editions: list[EditionRecord]
    work_key: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None


class BookResponse(BaseRecord):
    success: bool
    book: Optional[CanonicalBook] = None
    source: ProviderName = "google_books"
    message: Optional[str] = None
