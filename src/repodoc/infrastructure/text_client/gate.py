"""Single-flight gate for provider calls."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .retry import Sleeper

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallGate:
    """
    Serializes provider calls: one permit, shared by every client holding it.

    After a successful operation the permit is held for cooldown_seconds more,
    so back-to-back callers are spaced out even when each call is fast.
    Create one gate per provider and pass it to every client that talks to it.
    """

    def __init__(self, cooldown_seconds: float = 0.0, sleep: Optional[Sleeper] = None):
        self._lock = asyncio.Lock()
        self._cooldown_seconds = cooldown_seconds
        self._sleep = sleep or asyncio.sleep
        self._completed = 0

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    @property
    def busy(self) -> bool:
        """True while a call (or its cooldown) holds the permit."""
        return self._lock.locked()

    @property
    def completed_calls(self) -> int:
        return self._completed

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation while holding the permit, then cool down on success."""
        async with self._lock:
            result = await operation()
            self._completed += 1
            if self._cooldown_seconds > 0:
                await self._sleep(self._cooldown_seconds)
            return result
