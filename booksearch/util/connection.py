from typing import Annotated

import aiohttp
from fastapi import Depends

from booksearch.internal.book_search import BookSearchService
from booksearch.internal.env_settings import Settings


async def get_connection():
    # per-request calls carry their own shorter timeouts
    timeout = aiohttp.ClientTimeout(Settings().providers.search_timeout * 2)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        yield session


def get_book_search_service(
    client_session: Annotated[aiohttp.ClientSession, Depends(get_connection)],
) -> BookSearchService:
    return BookSearchService.from_settings(client_session)
