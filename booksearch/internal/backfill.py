"""
Cross-source backfill of the original publication year.

Google Books reports the date of the specific edition it found, OpenLibrary
knows the first publication year of the work. For every Google Books record
we look the work up on OpenLibrary and keep the earliest year among results
that look like the same book.
"""

import asyncio
import re

from booksearch.internal.exceptions import ProviderError
from booksearch.internal.models import CanonicalBook, OpenLibraryData
from booksearch.internal.sources.categories import (
    merge_categories,
    normalize_categories,
    split_and_clean_categories,
)
from booksearch.internal.sources.openlibrary_api import (
    MAX_SEARCH_SUBJECTS,
    OpenLibraryDoc,
    OpenLibraryProvider,
)
from booksearch.util.log import logger

_PUNCTUATION = re.compile(r"[^\w\s]")

# regional title pairs of the same first volume
REGIONAL_TITLE_ALIASES: tuple[tuple[str, str, str], ...] = (
    ("harry potter", "sorcerer", "philosopher"),
)


def _normalize_title(title: str) -> str:
    return " ".join(_PUNCTUATION.sub("", title.lower()).split())


def _titles_match(book_title: str, doc_title: str) -> bool:
    a = _normalize_title(book_title)
    b = _normalize_title(doc_title)
    if a == b or a in b or b in a:
        return True
    for series, first, second in REGIONAL_TITLE_ALIASES:
        if series in a and series in b:
            if (first in a and second in b) or (second in a and first in b):
                return True
    return False


def _authors_match(book_authors: list[str], doc_authors: list[str]) -> bool:
    ours = [a.lower().strip() for a in book_authors if a]
    theirs = [a.lower().strip() for a in doc_authors if a]
    # missing author data on either side does not block a match
    if not ours or not theirs:
        return True

    for ga in ours:
        ga_words = ga.split()
        for ola in theirs:
            ola_words = ola.split()
            if ga_words and ola_words and ga_words[-1] == ola_words[-1]:
                return True
            if ga in ola or ola in ga:
                return True
            if any(word in ola_words for word in ga_words):
                return True
    return False


def is_likely_match(
    book: CanonicalBook, doc: OpenLibraryDoc, searched_by_isbn: bool = False
) -> bool:
    """Whether an OpenLibrary document describes the same work as the book."""
    if searched_by_isbn:
        return True
    return _titles_match(book.title, doc.get("title", "")) and _authors_match(
        book.authors, doc.get("author_name", [])
    )


def _earliest_match(
    book: CanonicalBook, docs: list[OpenLibraryDoc], searched_by_isbn: bool
) -> OpenLibraryDoc | None:
    best: OpenLibraryDoc | None = None
    for doc in docs:
        year = doc.get("first_publish_year")
        if not year or not is_likely_match(book, doc, searched_by_isbn):
            continue
        if best is None or year < best.get("first_publish_year", year):
            best = doc
    return best


async def find_original_publication(
    book: CanonicalBook, provider: OpenLibraryProvider
) -> OpenLibraryDoc | None:
    """
    Find the OpenLibrary work with the earliest publication year for a book.
    Tries a title + first author lookup, then an ISBN lookup.

    Raises:
        ProviderError: the lookup request failed
    """
    if book.title and book.authors:
        docs = await provider.lookup_works(
            title=book.title, author=book.authors[0], limit=10
        )
        best = _earliest_match(book, docs, searched_by_isbn=False)
        if best:
            logger.debug(
                "Found original publication via title/author",
                title=book.title,
                year=best.get("first_publish_year"),
            )
            return best

    isbn = book.isbn_13 or book.isbn_10
    if isbn:
        docs = await provider.lookup_works(isbn=isbn, limit=5)
        best = _earliest_match(book, docs, searched_by_isbn=True)
        if best:
            logger.debug(
                "Found original publication via ISBN",
                title=book.title,
                year=best.get("first_publish_year"),
            )
            return best

    return None


def apply_backfill(book: CanonicalBook, doc: OpenLibraryDoc) -> CanonicalBook:
    """New record with the OpenLibrary work's first publication year, key and subjects."""
    raw_subjects = (doc.get("subject") or [])[:MAX_SEARCH_SUBJECTS]
    subjects = split_and_clean_categories(raw_subjects)
    first_year = doc.get("first_publish_year")

    # only add subjects that do not overlap an existing category
    categories = list(book.categories)
    for subject in normalize_categories(raw_subjects, split_ampersand=False):
        s = subject.lower()
        if any(s in c.lower() or c.lower() in s for c in categories):
            continue
        categories.append(subject)

    return book.model_copy(
        update={
            "original_published_date": str(first_year) if first_year else None,
            "open_library_key": doc.get("key") or book.open_library_key,
            "open_library_data": OpenLibraryData(
                edition_count=doc.get("edition_count"),
                first_publish_year=first_year,
                subjects=subjects,
                raw_subjects=raw_subjects,
            ),
            "categories": merge_categories(categories),
        }
    )


async def backfill_book(
    book: CanonicalBook, provider: OpenLibraryProvider
) -> CanonicalBook:
    """Backfill one record; any failure leaves the record untouched."""
    try:
        doc = await find_original_publication(book, provider)
    except (ProviderError, TimeoutError) as e:
        logger.warning(
            "OpenLibrary backfill failed", title=book.title, error=str(e)
        )
        return book

    if not doc:
        logger.debug("No OpenLibrary data found", title=book.title)
        return book
    return apply_backfill(book, doc)


async def backfill_books(
    books: list[CanonicalBook], provider: OpenLibraryProvider
) -> list[CanonicalBook]:
    return list(await asyncio.gather(*(backfill_book(b, provider) for b in books)))
