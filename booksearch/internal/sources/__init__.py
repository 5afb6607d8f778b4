"""
Catalog providers for book discovery: Google Books and OpenLibrary.
"""

from booksearch.internal.sources.abstract import BookProvider
from booksearch.internal.sources.categories import (
    merge_categories,
    normalize_categories,
    split_and_clean_categories,
)
from booksearch.internal.sources.google_books_api import (
    GoogleBooksProvider,
    parse_volume,
)
from booksearch.internal.sources.isbn_utils import (
    is_isbn,
    looks_like_isbn_query,
    normalize_isbn,
    split_isbns,
)
from booksearch.internal.sources.openlibrary_api import OpenLibraryProvider
from booksearch.internal.sources.unified_search import fan_out

__all__ = [
    "BookProvider",
    # Categories
    "merge_categories",
    "normalize_categories",
    "split_and_clean_categories",
    # ISBN utilities
    "is_isbn",
    "looks_like_isbn_query",
    "normalize_isbn",
    "split_isbns",
    # Google Books
    "GoogleBooksProvider",
    "parse_volume",
    # OpenLibrary
    "OpenLibraryProvider",
    # Unified search
    "fan_out",
]
