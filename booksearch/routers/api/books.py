from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from booksearch.internal.book_search import BookSearchService
from booksearch.internal.exceptions import ProviderError, SearchValidationError
from booksearch.internal.models import BookResponse, EditionsResponse
from booksearch.util.connection import get_book_search_service
from booksearch.util.log import logger

router = APIRouter(prefix="/books", tags=["Books"])


@router.get("/{volume_id}", response_model=BookResponse)
async def get_book(
    volume_id: str,
    service: Annotated[BookSearchService, Depends(get_book_search_service)],
):
    try:
        response = await service.get_book(volume_id)
    except SearchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        logger.error("Book lookup failed", volume_id=volume_id, error=str(e))
        raise HTTPException(status_code=502, detail="Google Books request failed")

    if not response.success:
        raise HTTPException(status_code=404, detail=response.message)
    return response


@router.get("/{work_id}/editions", response_model=EditionsResponse)
async def get_editions(
    work_id: str,
    service: Annotated[BookSearchService, Depends(get_book_search_service)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    english_only: Annotated[bool, Query(alias="englishOnly")] = False,
    original_title: Annotated[str, Query(alias="originalTitle")] = "",
):
    try:
        return await service.get_editions(
            work_id,
            limit=limit,
            english_only=english_only,
            original_title=original_title,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
