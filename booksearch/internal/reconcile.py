"""
Reconciliation of the two providers' result lists into one deduplicated list.

Records are keyed by a normalized title so that special editions, box sets
and "(Series Name, #2)" annotations collapse onto the same work. When two
records share a key they are merged: the standard edition wins conflicts and
the disagreeing printings are kept as edition variants.
"""

import re
from typing import Iterable

from booksearch.internal.models import CanonicalBook, EditionVariant, OpenLibraryData
from booksearch.internal.ranking.relevance import RelevanceRanker, sort_by_relevance
from booksearch.internal.sources.categories import merge_categories
from booksearch.util.log import logger

_EDITION_WORDS = (
    r"deluxe|special|collector'?s?|premium|limited|anniversary|commemorative"
    r"|expanded|enhanced|director'?s?"
)
_FORMAT_WORDS = r"hardcover|paperback|hardback"

_DEDUP_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(
            rf"\b({_EDITION_WORDS})\s+(edition|version|release|hardcover|paperback)\b"
        ),
        "",
    ),
    (re.compile(rf"\b({_EDITION_WORDS})\b"), ""),
    (
        re.compile(
            r"\b(hardcover|paperback|hardback|trade\s+paperback|mass\s+market"
            r"|library\s+binding|box(?:ed)?\s+set|slipcase(?:d)?|collector'?s?\s+box)\b"
        ),
        "",
    ),
    # trailing descriptors introduced by punctuation, "- Deluxe Hardcover"
    (
        re.compile(
            rf"[:\-–—]\s*({_EDITION_WORDS}|hardcover|paperback|slipcase(?:d)?"
            r"|box(?:ed)?\s+set|collector'?s?\s+box)(\W|$)"
        ),
        " ",
    ),
    (re.compile(r"\b(book|volume|vol\.?|series)\s+\d+\b"), ""),
    (
        re.compile(
            r"\([^)]*(?:edition|version|release|deluxe|special|collector|hardcover|paperback)[^)]*\)",
            re.I,
        ),
        "",
    ),
    # trailing series annotations, "(The Expanse, #1)" or "[Dune Chronicles]"
    (re.compile(r"\s*\([^)]*\)\s*$"), " "),
    (re.compile(r"\s*\[[^\]]*\]\s*$"), " "),
    (re.compile(r"[^\w\s]"), ""),
)

_SPECIAL_EDITION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\b({_EDITION_WORDS})\b"),
    re.compile(rf"\b({_FORMAT_WORDS})\b"),
    re.compile(
        r"\([^)]*(?:edition|version|release|deluxe|special|collector|hardcover|paperback)[^)]*\)",
        re.I,
    ),
)

VARIANT_FIELDS = ("title", "publisher", "published_date", "isbn_13", "isbn_10")


def dedup_key(title: str) -> str:
    """Normalized title used to decide whether two records describe the same work."""
    key = title.lower()
    for pattern, replacement in _DEDUP_PATTERNS:
        key = pattern.sub(replacement, key)
    key = " ".join(key.split())
    # a title made only of edition noise still needs a key of its own
    return key or " ".join(title.lower().split())


def is_special_edition(title: str) -> bool:
    lowered = title.lower()
    return any(pattern.search(lowered) for pattern in _SPECIAL_EDITION_PATTERNS)


def _values_differ(primary: CanonicalBook, secondary: CanonicalBook, field: str) -> bool:
    a = getattr(primary, field)
    b = getattr(secondary, field)
    if a is None or b is None:
        return False
    return str(a).strip().lower() != str(b).strip().lower()


def _snapshot(book: CanonicalBook, is_original: bool) -> EditionVariant:
    return EditionVariant(
        title=book.title,
        publisher=book.publisher,
        published_date=book.published_date,
        isbn_13=book.isbn_13,
        isbn_10=book.isbn_10,
        page_count=book.page_count,
        thumbnail=book.thumbnail,
        description=book.description,
        source=book.source,
        is_original=is_original,
    )


def add_variant(
    variants: list[EditionVariant], variant: EditionVariant
) -> list[EditionVariant]:
    """
    Append a variant unless one with the same key exists. An existing variant
    is only ever upgraded to is_original, never downgraded.
    """
    if not variant.has_meaningful_data:
        return variants

    for index, stored in enumerate(variants):
        if stored.key != variant.key:
            continue
        if variant.is_original and not stored.is_original:
            variants = list(variants)
            variants[index] = stored.model_copy(update={"is_original": True})
        return variants

    return [*variants, variant]


def _merge_open_library_data(
    primary: OpenLibraryData | None, secondary: OpenLibraryData | None
) -> OpenLibraryData | None:
    if primary is None or secondary is None:
        return primary or secondary
    return OpenLibraryData(
        edition_count=secondary.edition_count or primary.edition_count,
        first_publish_year=secondary.first_publish_year or primary.first_publish_year,
        subjects=merge_categories(primary.subjects, secondary.subjects),
        raw_subjects=list(dict.fromkeys([*primary.raw_subjects, *secondary.raw_subjects])),
    )


def merge_duplicate_books(
    primary: CanonicalBook, secondary: CanonicalBook
) -> CanonicalBook:
    """
    Merge two records that share a dedup key into a new record.
    The primary's values win; missing values are backfilled from the secondary.
    """
    variants = list(primary.edition_variants)
    for variant in secondary.edition_variants:
        variants = add_variant(variants, variant)

    if any(_values_differ(primary, secondary, field) for field in VARIANT_FIELDS):
        variants = add_variant(variants, _snapshot(primary, is_original=True))
        variants = add_variant(variants, _snapshot(secondary, is_original=False))

    sources = list(
        dict.fromkeys([*primary.contributing_sources, *secondary.contributing_sources])
    )
    raw_data = {**(secondary.raw_data or {}), **(primary.raw_data or {})}

    logger.debug(
        "Merged duplicate books",
        primary=primary.title,
        secondary=secondary.title,
        edition_variants=len(variants),
    )

    return primary.model_copy(
        update={
            "page_count": primary.page_count or secondary.page_count,
            "original_published_date": primary.original_published_date
            or secondary.original_published_date,
            "publisher": primary.publisher or secondary.publisher,
            "isbn_13": primary.isbn_13 or secondary.isbn_13,
            "isbn_10": primary.isbn_10 or secondary.isbn_10,
            "thumbnail": primary.thumbnail or secondary.thumbnail,
            "open_library_key": primary.open_library_key or secondary.open_library_key,
            "categories": merge_categories(primary.categories, secondary.categories),
            "edition_variants": variants,
            "open_library_data": _merge_open_library_data(
                primary.open_library_data, secondary.open_library_data
            ),
            "sources": sources,
            "source": "merged" if len(sources) > 1 else primary.source,
            "raw_data": raw_data or None,
        }
    )


class Reconciler:
    """Title-keyed upsert of provider records, scored against the query."""

    def __init__(self, ranker: RelevanceRanker):
        self.ranker = ranker

    def reconcile(
        self,
        google_books: Iterable[CanonicalBook],
        openlibrary_books: Iterable[CanonicalBook],
        query: str,
    ) -> list[CanonicalBook]:
        merged: list[CanonicalBook] = []
        seen: dict[str, int] = {}

        def upsert(book: CanonicalBook, source_label: str):
            if not book.title:
                return
            key = dedup_key(book.title)
            incoming = book.model_copy(
                update={
                    "relevance_score": self.ranker.score(book, query),
                    "primary_source": source_label,
                }
            )

            index = seen.get(key)
            if index is None:
                seen[key] = len(merged)
                merged.append(incoming)
                return

            existing = merged[index]
            # prefer the standard edition; otherwise the earlier record stays primary
            if not is_special_edition(incoming.title) and is_special_edition(
                existing.title
            ):
                primary, secondary = incoming, existing
            else:
                primary, secondary = existing, incoming

            merged[index] = merge_duplicate_books(primary, secondary).model_copy(
                update={
                    "relevance_score": max(
                        existing.relevance_score or 0, incoming.relevance_score or 0
                    ),
                    "primary_source": primary.primary_source,
                }
            )

        # Google Books first: its metadata is usually richer, and it wins ties
        for book in google_books:
            upsert(book, "google_books")
        for book in openlibrary_books:
            upsert(book, "open_library")

        return sort_by_relevance(merged)
