"""OpenAI-compatible chat-completions client implementation."""

import asyncio
import logging
from typing import Optional

import httpx

from repodoc.core.sanitizer import ResponseSanitizer

from .errors import UnavailableError
from .gate import CallGate
from .interface import TextClientInterface, TextTransportInterface, TransportResponse
from .response_parser import classify_error, parse_completion_response
from .retry import RetryConfig, Sleeper, with_rate_limit_retry

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a senior software engineer who explains code to newcomers. "
    "Answer directly with the requested content only."
)


class HttpxTransport(TextTransportInterface):
    """
    Chat-completions transport over httpx.

    Uses connection pooling: one AsyncClient is reused across requests until
    close() is called.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        max_tokens: int = 1024,
        timeout: float = 60.0,
        app_title: str = "repodoc",
    ):
        """
        Initialize the transport.

        Args:
            api_url: Full chat-completions endpoint URL
            api_key: API key for authentication
            model: Model name to request
            max_tokens: Completion token limit per request
            timeout: Request timeout in seconds
            app_title: Value sent in the X-Title header
        """
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._app_title = app_title
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_payload(self, prompt: str, system_instruction: Optional[str]) -> dict:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})
        return {"model": self._model, "messages": messages, "max_tokens": self._max_tokens}

    async def send(self, prompt: str, system_instruction: Optional[str] = None) -> TransportResponse:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_title,
        }
        client = await self._get_client()
        try:
            response = await client.post(
                self._api_url,
                headers=headers,
                json=self.build_payload(prompt, system_instruction),
            )
        except httpx.TimeoutException as e:
            raise UnavailableError(f"Request timeout: {e}") from e
        except httpx.ConnectError as e:
            raise UnavailableError(f"Connection error: {e}") from e
        except httpx.RequestError as e:
            raise UnavailableError(f"Request error: {e}") from e

        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )


class TextGenerationClient(TextClientInterface):
    """
    Throttled, retrying, sanitizing client for a text-generation provider.

    Every call goes through the injected CallGate, so all clients sharing a
    gate have at most one request in flight. Rate-limit responses are retried
    after the wait the provider asks for; every other failure is raised as
    its ProviderError category straight away. Successful completions pass
    through the ResponseSanitizer before being returned.
    """

    def __init__(
        self,
        transport: TextTransportInterface,
        gate: Optional[CallGate] = None,
        retry_config: Optional[RetryConfig] = None,
        sanitizer: Optional[ResponseSanitizer] = None,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
        sleep: Optional[Sleeper] = None,
    ):
        self._transport = transport
        self._gate = gate or CallGate()
        self._retry_config = retry_config or RetryConfig()
        self._sanitizer = sanitizer or ResponseSanitizer()
        self._system_instruction = system_instruction
        self._sleep = sleep or asyncio.sleep
        self._attempts = 0

    @property
    def gate(self) -> CallGate:
        return self._gate

    @property
    def attempts(self) -> int:
        """Number of requests sent to the transport, retries included."""
        return self._attempts

    async def close(self) -> None:
        await self._transport.close()

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        system = system_instruction or self._system_instruction

        async def attempt() -> str:
            return await self._call(prompt, system)

        raw = await self._gate.run(
            lambda: with_rate_limit_retry(attempt, self._retry_config, sleep=self._sleep)
        )
        text = self._sanitizer.sanitize(raw)
        if not text:
            logger.warning("Completion was empty after sanitization")
        return text

    async def _call(self, prompt: str, system_instruction: Optional[str]) -> str:
        """
        Send one request and return the raw completion text.

        Raises:
            ProviderError: Classified from the response status and body
        """
        self._attempts += 1
        logger.info(f"Sending prompt to provider ({len(prompt)} chars)")
        response = await self._transport.send(prompt, system_instruction)

        if response.ok:
            return parse_completion_response(response.text)

        error = classify_error(response)
        logger.warning(f"Provider returned {response.status_code}: {type(error).__name__}")
        raise error


def create_text_client(
    api_url: str,
    api_key: str,
    model: str,
    max_tokens: int = 1024,
    timeout: float = 60.0,
    max_attempts: int = 5,
    cooldown_seconds: float = 1.0,
    default_wait_seconds: float = 5.0,
    max_wait_seconds: float = 120.0,
    gate: Optional[CallGate] = None,
) -> TextGenerationClient:
    """
    Factory function to create a text-generation client.

    Args:
        api_url: Chat-completions endpoint URL
        api_key: API key for authentication
        model: Model name
        max_tokens: Completion token limit per request
        timeout: Request timeout in seconds
        max_attempts: Attempts before a rate limit is surfaced
        cooldown_seconds: Pause after each successful call
        default_wait_seconds: Wait used when a rate limit carries no hint
        max_wait_seconds: Upper bound for a single rate-limit wait
        gate: Shared gate; a new one is created when omitted

    Returns:
        Configured TextGenerationClient instance
    """
    transport = HttpxTransport(
        api_url=api_url,
        api_key=api_key,
        model=model,
        max_tokens=max_tokens,
        timeout=timeout,
    )
    retry_config = RetryConfig(
        max_attempts=max_attempts,
        default_wait_seconds=default_wait_seconds,
        max_wait_seconds=max_wait_seconds,
    )
    return TextGenerationClient(
        transport=transport,
        gate=gate or CallGate(cooldown_seconds=cooldown_seconds),
        retry_config=retry_config,
    )
