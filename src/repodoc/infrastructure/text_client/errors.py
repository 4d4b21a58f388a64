"""Exception types for the text-generation client."""

from typing import Optional


class ProviderError(Exception):
    """Base exception for text-generation provider errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ProviderError):
    """The provider asked us to slow down.

    Retried internally, honouring wait_seconds when the provider supplied a
    hint; surfaced once the attempt ceiling is reached.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 429,
        wait_seconds: Optional[float] = None,
    ):
        super().__init__(message, status_code)
        self.wait_seconds = wait_seconds


class AuthFailureError(ProviderError):
    """Credentials were rejected (401/403). Never retried."""

    pass


class UnavailableError(ProviderError):
    """The provider is down, overloaded, or unreachable."""

    pass


class MalformedResponseError(ProviderError):
    """The provider answered with a body that does not match the response schema."""

    pass


class ProviderRequestError(ProviderError):
    """Any other rejected request, including payloads that are too large."""

    pass
