"""
Edition listings for an OpenLibrary work, optionally narrowed to English
editions whose titles still look like the work's title.
"""

import re

from booksearch.internal.exceptions import ProviderError, WorkNotFound
from booksearch.internal.models import EditionRecord, EditionsResponse
from booksearch.internal.sources.openlibrary_api import OpenLibraryProvider
from booksearch.util.log import logger

ENGLISH_LANGUAGE_TAGS = frozenset({"en", "eng", "english"})
MIN_SHARED_TITLE_WORDS = 2

_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize_work_key(work_id: str) -> str:
    work_id = work_id.strip()
    if not work_id:
        raise ValueError("OpenLibrary work id is required")
    if work_id.startswith("/works/"):
        return work_id
    return f"/works/{work_id.removeprefix('works/')}"


def _normalize_title(title: str) -> str:
    return " ".join(_PUNCTUATION.sub("", title.lower()).split())


def is_english_edition(edition: EditionRecord) -> bool:
    """Only the first declared language counts; editions without one are not English."""
    if not edition.languages:
        return False
    return edition.languages[0].strip().lower() in ENGLISH_LANGUAGE_TAGS


def title_matches_work(edition_title: str, original_title: str) -> bool:
    """
    False only for clearly different titles, e.g. a translation
    "Der Astronaut" of "Project Hail Mary".
    """
    work = _normalize_title(original_title)
    edition = _normalize_title(edition_title)
    if len(work) <= 3 or len(edition) <= 3:
        return True
    if work in edition or edition in work:
        return True

    work_words = set(work.split())
    edition_words = set(edition.split())
    if len(work_words) <= 1 or len(edition_words) <= 1:
        return True
    return len(work_words & edition_words) >= MIN_SHARED_TITLE_WORDS


def filter_english(
    editions: list[EditionRecord], original_title: str = ""
) -> list[EditionRecord]:
    kept = []
    for edition in editions:
        if not is_english_edition(edition):
            continue
        if original_title and not title_matches_work(edition.title, original_title):
            logger.debug(
                "Dropping edition with mismatched title",
                edition_title=edition.title,
                original_title=original_title,
            )
            continue
        kept.append(edition)
    return kept


def sort_by_year(editions: list[EditionRecord]) -> list[EditionRecord]:
    """Newest first; editions without a parseable year go last."""
    return sorted(editions, key=lambda edition: edition.year or 0, reverse=True)


async def get_editions(
    provider: OpenLibraryProvider,
    work_id: str,
    limit: int = 20,
    english_only: bool = False,
    original_title: str = "",
) -> EditionsResponse:
    """
    Editions of an OpenLibrary work, newest first.

    Raises:
        ValueError: work_id is empty
    """
    work_key = normalize_work_key(work_id)
    logger.info(
        "Fetching editions",
        work_key=work_key,
        english_only=english_only,
        original_title=original_title,
    )

    # fetch extra to survive the English filter
    fetch_limit = limit * 3 if english_only else limit * 2
    try:
        editions, total = await provider.fetch_editions(work_key, fetch_limit)
    except WorkNotFound:
        logger.warning("OpenLibrary has no editions for work", work_key=work_key)
        return EditionsResponse(
            success=True,
            total_editions=0,
            editions=[],
            work_key=work_key,
            message="Open Library reported no editions for this work.",
        )
    except ProviderError as e:
        logger.error("Fetching editions failed", work_key=work_key, error=str(e))
        return EditionsResponse(
            success=False, total_editions=0, editions=[], error=str(e)
        )

    if not editions:
        return EditionsResponse(
            success=True,
            total_editions=0,
            editions=[],
            work_key=work_key,
            message="No editions found",
        )

    if english_only:
        before = len(editions)
        editions = filter_english(editions, original_title)
        logger.debug(
            "Filtered editions",
            work_key=work_key,
            removed=before - len(editions),
            remaining=len(editions),
        )

    editions = sort_by_year(editions)[:limit]
    logger.info("Found editions", work_key=work_key, editions=len(editions))

    return EditionsResponse(
        success=True,
        total_editions=total,
        editions=editions,
        work_key=work_key,
    )
