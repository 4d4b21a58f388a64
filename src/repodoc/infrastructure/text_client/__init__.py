"""
Text-generation client module for repodoc.

Provides an async client for OpenAI-compatible chat-completions APIs with a
single-flight call gate, rate-limit retries driven by provider wait hints,
strict response validation and response sanitization.
"""

from .client import (
    DEFAULT_SYSTEM_INSTRUCTION,
    HttpxTransport,
    TextGenerationClient,
    create_text_client,
)
from .errors import (
    AuthFailureError,
    MalformedResponseError,
    ProviderError,
    ProviderRequestError,
    RateLimitedError,
    UnavailableError,
)
from .gate import CallGate
from .interface import TextClientInterface, TextTransportInterface, TransportResponse
from .response_parser import classify_error, parse_completion_response, parse_wait_hint
from .retry import RetryConfig, with_rate_limit_retry

__all__ = [
    "TextClientInterface",
    "TextTransportInterface",
    "TransportResponse",
    "TextGenerationClient",
    "HttpxTransport",
    "create_text_client",
    "DEFAULT_SYSTEM_INSTRUCTION",
    "CallGate",
    "RetryConfig",
    "with_rate_limit_retry",
    "classify_error",
    "parse_completion_response",
    "parse_wait_hint",
    "ProviderError",
    "RateLimitedError",
    "AuthFailureError",
    "UnavailableError",
    "MalformedResponseError",
    "ProviderRequestError",
]
