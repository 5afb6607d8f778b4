"""
Optional audiobook enrichment of search results.

Looking up audiobook availability is left to an injected collaborator; this
module decides which books get enriched and attaches the hints Google Books
already gives us for free.
"""

import asyncio
from typing import Any, Protocol

from booksearch.internal.models import (
    CanonicalBook,
    EnrichmentMode,
    GoogleAudiobookHints,
)
from booksearch.util.log import logger


class AudiobookEnricher(Protocol):
    async def enrich(self, book: CanonicalBook) -> CanonicalBook: ...


class NullAudiobookEnricher:
    """Default collaborator, leaves every book untouched."""

    async def enrich(self, book: CanonicalBook) -> CanonicalBook:
        return book


def google_audiobook_hints(book: CanonicalBook) -> GoogleAudiobookHints | None:
    """Audiobook hints from the raw Google Books volume, if the volume has any."""
    item: dict[str, Any] = (book.raw_data or {}).get("google_books") or {}
    if not item:
        return None

    volume_info = item.get("volumeInfo") or {}
    access_info = item.get("accessInfo") or {}
    sale_info = item.get("saleInfo") or {}

    text_to_speech = access_info.get("textToSpeechPermission") == "ALLOWED"
    marked_as_audiobook = volume_info.get("printType") == "AUDIOBOOK" or any(
        "audiobook" in category.lower()
        for category in volume_info.get("categories") or []
    )
    has_audio_links = "audiobook" in (sale_info.get("buyLink") or "") or (
        "audiobook" in (volume_info.get("infoLink") or "")
    )

    if not (text_to_speech or marked_as_audiobook or has_audio_links):
        return None

    if marked_as_audiobook:
        confidence = "high"
    elif text_to_speech:
        confidence = "medium"
    else:
        confidence = "low"

    return GoogleAudiobookHints(
        text_to_speech_allowed=text_to_speech,
        marked_as_audiobook=marked_as_audiobook,
        has_audio_links=has_audio_links,
        confidence=confidence,
    )


async def enrich_book(
    book: CanonicalBook, enricher: AudiobookEnricher
) -> CanonicalBook:
    hints = google_audiobook_hints(book)
    if hints:
        book = book.model_copy(update={"google_audiobook_hints": hints})
        logger.debug(
            "Google audiobook hints", title=book.title, confidence=hints.confidence
        )

    try:
        return await enricher.enrich(book)
    except Exception as e:
        # enrichment is best effort, the search result stands without it
        logger.warning("Audiobook enrichment failed", title=book.title, error=str(e))
        return book


async def enrich_books(
    books: list[CanonicalBook],
    mode: EnrichmentMode,
    enricher: AudiobookEnricher,
) -> list[CanonicalBook]:
    """Enrich the top result only, or every result concurrently."""
    if mode == EnrichmentMode.none or not books:
        return books

    logger.info("Enriching results with audiobook data", mode=mode.value, books=len(books))
    if mode == EnrichmentMode.top:
        return [await enrich_book(books[0], enricher), *books[1:]]

    return list(await asyncio.gather(*(enrich_book(b, enricher) for b in books)))
