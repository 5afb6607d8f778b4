"""
Error taxonomy for provider calls.

Provider errors never reach the caller of a search: the fan-out coordinator
turns them into an empty, unsuccessful result for the failing provider.
"""


class ProviderError(Exception):
    """Base class for a failed request against a catalog provider."""

    def __init__(self, provider: str, message: str, status: int | None = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status = status


class ProviderUnavailable(ProviderError):
    """Network failure, timeout, malformed response or an unexpected status."""


class ProviderRateLimited(ProviderError):
    """The provider refused the request because of quota or rate limits."""


class ProviderBadRequest(ProviderError):
    """The provider rejected the query as malformed."""


class WorkNotFound(ProviderError):
    """Edition lookup for a work identifier the provider does not know."""


class SearchValidationError(ValueError):
    pass


def classify_status(provider: str, status: int, message: str = "") -> ProviderError:
    """Map a non-2xx HTTP status onto the provider error taxonomy."""
    if status == 429:
        return ProviderRateLimited(provider, message or "rate limited", status)
    if status == 400:
        return ProviderBadRequest(provider, message or "invalid query", status)
    return ProviderUnavailable(provider, message or f"HTTP {status}", status)
