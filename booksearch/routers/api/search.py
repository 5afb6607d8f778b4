from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from booksearch.internal.book_search import BookSearchService
from booksearch.internal.env_settings import Settings
from booksearch.internal.exceptions import SearchValidationError
from booksearch.internal.models import EnrichmentMode, SearchResponse
from booksearch.util.connection import get_book_search_service

router = APIRouter(prefix="/search", tags=["Search"])


def parse_enrichment_mode(audiobooks: str | None) -> EnrichmentMode:
    """`true`/`all` enrich every result, `top` only the first one."""
    match (audiobooks or "").strip().lower():
        case "true" | "all":
            return EnrichmentMode.all
        case "top":
            return EnrichmentMode.top
        case _:
            return EnrichmentMode.none


@router.get("", response_model=SearchResponse)
async def search_books(
    service: Annotated[BookSearchService, Depends(get_book_search_service)],
    query: Annotated[str | None, Query(alias="q")] = None,
    search_type: Annotated[str, Query(alias="type")] = "general",
    limit: int = 10,
    audiobooks: str | None = None,
):
    limit = max(1, min(limit, Settings().app.max_results_cap))
    try:
        return await service.search(
            query or "",
            search_type=search_type,
            max_results=limit,
            enrichment_mode=parse_enrichment_mode(audiobooks),
        )
    except SearchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
