"""Typed errors raised by provider clients and the provider router."""

from typing import Optional


class ProviderError(Exception):
    """Base class for failures of a single provider call."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code


class AuthError(ProviderError):
    """The provider rejected the API key (HTTP 401)."""


class RateLimitedError(ProviderError):
    """The provider is throttling requests (HTTP 429)."""


class BadRequestError(ProviderError):
    """The request itself was rejected (HTTP 400)."""


class UnavailableError(ProviderError):
    """Provider outage or timeout (HTTP 5xx or no answer in time)."""


class UnknownProviderError(ProviderError):
    """Any other transport or parse failure."""


class InvalidResponseError(UnknownProviderError):
    """The provider answered without a usable completion choice."""


class NoProvidersAvailableError(Exception):
    """No configured provider passed its health check."""


class UnsupportedOperationError(Exception):
    """The requested provider does not offer this capability."""
