"""
Fan-out of one search intent to every catalog provider in parallel.
A failing provider yields an empty, unsuccessful result instead of failing the search.
"""

import asyncio
import time
from typing import TYPE_CHECKING

from booksearch.internal.exceptions import ProviderError
from booksearch.internal.models import ProviderName, ProviderResult
from booksearch.internal.sources.abstract import BookProvider
from booksearch.util.log import logger

if TYPE_CHECKING:
    from booksearch.internal.query_planner import SearchIntent


async def _search_provider(
    provider: BookProvider, intent: "SearchIntent", max_results: int
) -> ProviderResult:
    start = time.perf_counter()
    try:
        result = await provider.search(intent, max_results)
    except (ProviderError, TimeoutError) as e:
        logger.warning(
            "Provider search failed",
            provider=provider.name,
            query=intent.raw_query,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ProviderResult(provider=provider.name, success=False, error=str(e))

    logger.debug(
        "Provider search finished",
        provider=provider.name,
        results=len(result.books),
        elapsed_ms=round((time.perf_counter() - start) * 1000),
    )
    return result


async def fan_out(
    providers: list[BookProvider], intent: "SearchIntent", max_results: int
) -> dict[ProviderName, ProviderResult]:
    """
    Run the intent against every provider concurrently and wait for all of them.

    Returns:
        Result per provider name. Unexpected exceptions are not caught.
    """
    logger.info(
        "Starting unified search",
        query=intent.raw_query,
        sources=[p.name for p in providers],
        max_results=max_results,
    )

    results = await asyncio.gather(
        *(_search_provider(p, intent, max_results) for p in providers)
    )

    by_provider = {result.provider: result for result in results}
    logger.info(
        "Unified search complete",
        query=intent.raw_query,
        **{f"{name}_count": len(r.books) for name, r in by_provider.items()},
        failed=[name for name, r in by_provider.items() if not r.success],
    )
    return by_provider
