"""Liveness endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from booksearch.internal.env_settings import Settings

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    google_books_api_key_configured: bool


@router.get("", response_model=HealthResponse)
async def health():
    settings = Settings()
    return HealthResponse(
        status="ok",
        version=settings.app.version,
        google_books_api_key_configured=settings.google_books_api_key is not None,
    )
