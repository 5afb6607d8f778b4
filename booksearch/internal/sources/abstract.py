from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout
from pydantic import ValidationError

from booksearch.internal.exceptions import (
    ProviderUnavailable,
    classify_status,
)
from booksearch.internal.models import ProviderName, ProviderResult
from booksearch.util.log import logger

if TYPE_CHECKING:
    from booksearch.internal.query_planner import SearchIntent

T = TypeVar("T")


class BookProvider(ABC):
    """
    One catalog provider. Translates a search intent into the provider's own
    request shape and its response into canonical book records.
    """

    name: ProviderName

    def __init__(
        self,
        client_session: ClientSession,
        search_timeout: float,
        lookup_timeout: float,
    ):
        self.client_session = client_session
        self.search_timeout = search_timeout
        self.lookup_timeout = lookup_timeout

    @abstractmethod
    async def search(self, intent: "SearchIntent", max_results: int) -> ProviderResult:
        """
        Run one search. Zero results is a successful, empty result.

        Raises:
            ProviderError: on transport failure, malformed responses or an
                error status from the provider.
        """

    async def _raise_for_status(self, response: ClientResponse):
        if response.ok:
            return
        try:
            body = await response.text()
        except ClientError:
            body = ""
        raise classify_status(self.name, response.status, body[:200])

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any],
        timeout: float,
    ) -> dict[str, Any]:
        try:
            async with self.client_session.get(
                url, params=params, timeout=ClientTimeout(total=timeout)
            ) as response:
                await self._raise_for_status(response)
                data = await response.json(content_type=None)
        except TimeoutError as e:
            raise ProviderUnavailable(self.name, f"timed out after {timeout}s") from e
        except ClientError as e:
            raise ProviderUnavailable(self.name, str(e)) from e
        except ValueError as e:
            raise ProviderUnavailable(self.name, "malformed response body") from e

        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "malformed response body")
        return data

    def _parse_items(
        self,
        items: Any,
        parse: Callable[[Any], T | None],
    ) -> list[T]:
        """
        Parse a response's item list, skipping items that are malformed or
        have no title.

        Raises:
            ProviderUnavailable: the item list itself is not a list.
        """
        if items is None:
            return []
        if not isinstance(items, list):
            raise ProviderUnavailable(self.name, "malformed response body")

        parsed: list[T] = []
        for item in items:
            if not isinstance(item, dict):
                logger.warning("Skipping malformed item", provider=self.name)
                continue
            try:
                result = parse(item)
            except (ValidationError, TypeError, AttributeError) as e:
                logger.warning(
                    "Skipping malformed item",
                    provider=self.name,
                    item_id=item.get("id") or item.get("key"),
                    error=str(e),
                )
                continue
            if result is not None:
                parsed.append(result)
        return parsed
