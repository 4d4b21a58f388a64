"""Response parsing and status classification for the chat-completions API."""

import json
import logging
import re
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import (
    AuthFailureError,
    MalformedResponseError,
    ProviderError,
    ProviderRequestError,
    RateLimitedError,
    UnavailableError,
)
from .interface import TransportResponse

logger = logging.getLogger(__name__)

# "try again in 250ms", "retry after 1.5s", "wait 2 seconds"
_ANCHORED_WAIT = re.compile(
    r"(?:try again|retry|wait)[^0-9]{0,20}?(\d+(?:\.\d+)?)\s*"
    r"(ms|msec|milliseconds?|s|sec|secs|seconds?)\b",
    re.IGNORECASE,
)
_ANY_WAIT = re.compile(
    r"(\d+(?:\.\d+)?)\s*(ms|msec|milliseconds?|s|sec|secs|seconds?)\b", re.IGNORECASE
)


class CompletionMessage(BaseModel):
    role: Optional[str] = None
    content: str


class CompletionChoice(BaseModel):
    message: CompletionMessage


class CompletionResponse(BaseModel):
    """Required subset of an OpenAI-compatible chat-completions body."""

    choices: list[CompletionChoice] = Field(min_length=1)


def _to_seconds(value: str, unit: str) -> float:
    amount = float(value)
    return amount / 1000.0 if unit.lower().startswith("m") else amount


def parse_wait_hint(text: str, headers: Optional[dict[str, str]] = None) -> Optional[float]:
    """
    Extract a wait time in seconds from a rate-limit response.

    Phrases such as "try again in 250ms" win over a bare duration elsewhere in
    the body; a numeric Retry-After header is the last resort.

    Returns:
        Seconds to wait, or None if no hint was found
    """
    match = _ANCHORED_WAIT.search(text) or _ANY_WAIT.search(text)
    if match:
        return _to_seconds(match.group(1), match.group(2))

    for name, value in (headers or {}).items():
        if name.lower() == "retry-after":
            try:
                return float(value)
            except ValueError:
                logger.debug(f"Ignoring non-numeric Retry-After header: {value}")
    return None


def is_payload_too_large(status_code: int, response_text: str) -> bool:
    """
    Check if the error response means the prompt was too large.

    Detects:
    - HTTP 413 status code (Request Entity Too Large)
    - HTTP 400 with token/context length patterns in the body
    """
    if status_code == 413:
        return True

    if status_code == 400:
        lower = response_text.lower()
        if "too large" in lower or "context length" in lower or "context_length" in lower:
            return True
        if "token" in lower and any(p in lower for p in ("limit", "exceed", "maximum", "too many")):
            return True

    return False


def is_rate_limited(status_code: int, response_text: str) -> bool:
    """HTTP 429, or a body that plainly says it is a rate limit."""
    if status_code == 429:
        return True
    lower = response_text.lower()
    return "rate limit" in lower or "rate_limit" in lower


def classify_error(response: TransportResponse) -> ProviderError:
    """
    Map a non-success response to the matching ProviderError.

    Args:
        response: Transport response with a non-2xx status

    Returns:
        The exception to raise (not raised here)
    """
    status, body = response.status_code, response.text
    snippet = body[:500]

    if is_payload_too_large(status, body):
        return ProviderRequestError(f"Request too large: {status} - {snippet}", status)
    if is_rate_limited(status, body):
        return RateLimitedError(
            f"Rate limited: {status} - {snippet}",
            status,
            wait_seconds=parse_wait_hint(body, response.headers),
        )
    if status in (401, 403):
        return AuthFailureError(f"Authentication failed: {status} - {snippet}", status)
    if status in (500, 502, 503, 504) or status == 408:
        return UnavailableError(f"Provider unavailable: {status} - {snippet}", status)
    return ProviderRequestError(f"API error: {status} - {snippet}", status)


def _embedded_error(error: object, body: str) -> ProviderError:
    """Classify an {"error": {...}} object returned with a 2xx status."""
    code = error.get("code") if isinstance(error, dict) else None
    status = code if isinstance(code, int) else 502
    return classify_error(TransportResponse(status_code=status, text=body))


def parse_completion_response(body: str) -> str:
    """
    Validate a chat-completions body and return the first completion text.

    Raises:
        MalformedResponseError: If the body is not JSON or misses required fields
        ProviderError: If the body carries an embedded provider error
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

    if isinstance(data, dict) and data.get("error") and not data.get("choices"):
        raise _embedded_error(data["error"], body)

    try:
        parsed = CompletionResponse.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Invalid response format: {e.error_count()} error(s)") from e

    return parsed.choices[0].message.content
