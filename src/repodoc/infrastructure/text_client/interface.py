"""Abstract interfaces for text-generation transports and clients."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TransportResponse:
    """Raw HTTP-level answer from the provider."""

    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class TextTransportInterface(ABC):
    """Sends one prompt to the provider and returns the raw response."""

    @abstractmethod
    async def send(self, prompt: str, system_instruction: Optional[str] = None) -> TransportResponse:
        """
        Send a prompt with an optional system instruction.

        Raises:
            UnavailableError: If the provider could not be reached
        """
        pass

    async def close(self) -> None:
        """Release any pooled connections."""
        return None


class TextClientInterface(ABC):
    """Abstract interface for text-generation clients."""

    @abstractmethod
    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        """
        Generate a completion for a prompt.

        Args:
            prompt: User prompt
            system_instruction: Optional system message

        Returns:
            Sanitized completion text

        Raises:
            ProviderError: Categorized failure after the retry policy
        """
        pass
