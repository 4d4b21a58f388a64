"""
Fake implementations for testing.

Provides in-memory implementations of infrastructure interfaces
for use in unit and integration tests without external dependencies.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Optional, Union

from repodoc.infrastructure.byte_store import (
    ByteStoreError,
    ByteStoreInterface,
    ByteStoreNotFoundError,
    StoreEntry,
    normalize_key,
)
from repodoc.infrastructure.text_client import (
    TextClientInterface,
    TextTransportInterface,
    TransportResponse,
)


class InMemoryByteStore(ByteStoreInterface):
    """
    In-memory byte store for testing.

    Directories are implicit: a key exists as a directory when some stored
    file lives underneath it.
    """

    def __init__(self):
        self._files: dict[str, bytes] = {}
        self.fail_reads = False

    async def write(self, key: str, data: bytes) -> None:
        self._files[normalize_key(key)] = bytes(data)

    async def read(self, key: str) -> bytes:
        if self.fail_reads:
            raise ByteStoreNotFoundError(f"Reads disabled: {key}")
        normalized = normalize_key(key)
        if normalized not in self._files:
            raise ByteStoreNotFoundError(f"Key not found: {key}")
        return self._files[normalized]

    async def list_children(self, dir_key: str) -> list[StoreEntry]:
        prefix = normalize_key(dir_key)
        prefix = f"{prefix}/" if prefix else ""
        children: dict[str, bool] = {}
        for key in self._files:
            if not key.startswith(prefix):
                continue
            head, sep, _ = key[len(prefix):].partition("/")
            children[head] = children.get(head, False) or bool(sep)
        if not children and prefix and not self._is_dir(prefix.rstrip("/")):
            raise ByteStoreNotFoundError(f"Directory not found: {dir_key}")
        return [StoreEntry(name=name, is_dir=is_dir) for name, is_dir in children.items()]

    async def exists(self, key: str) -> bool:
        normalized = normalize_key(key)
        return normalized in self._files or self._is_dir(normalized)

    async def list_prefixes(self) -> list[str]:
        return sorted({key.split("/", 1)[0] for key in self._files if "/" in key})

    async def delete_prefix(self, prefix: str) -> None:
        normalized = normalize_key(prefix)
        if not normalized:
            raise ByteStoreError("Refusing to delete the store root")
        for key in [k for k in self._files if k == normalized or k.startswith(f"{normalized}/")]:
            del self._files[key]

    def _is_dir(self, normalized: str) -> bool:
        if not normalized:
            return True
        return any(key.startswith(f"{normalized}/") for key in self._files)

    def keys(self) -> list[str]:
        """All stored file keys, sorted."""
        return sorted(self._files)

    def clear(self) -> None:
        self._files.clear()


def completion_body(content: str) -> str:
    """Build a minimal successful chat-completions response body."""
    return json.dumps({"choices": [{"message": {"role": "assistant", "content": content}}]})


class ScriptedTransport(TextTransportInterface):
    """
    Transport that replays queued responses in order.

    Queue TransportResponse objects, or exceptions to raise from send().
    The last queued item repeats once the queue runs dry.
    """

    def __init__(self, responses: Optional[list[Union[TransportResponse, Exception]]] = None):
        self._responses = list(responses or [])
        self.calls: list[tuple[str, Optional[str]]] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def queue(self, response: Union[TransportResponse, Exception]) -> "ScriptedTransport":
        self._responses.append(response)
        return self

    def queue_success(self, content: str) -> "ScriptedTransport":
        return self.queue(TransportResponse(status_code=200, text=completion_body(content)))

    async def send(self, prompt: str, system_instruction: Optional[str] = None) -> TransportResponse:
        self.calls.append((prompt, system_instruction))
        if not self._responses:
            raise AssertionError("ScriptedTransport has no responses queued")
        item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class StubTextClient(TextClientInterface):
    """
    Text client that answers without any transport.

    Args:
        responder: Fixed reply, or a callable mapping the prompt to a reply.
            A callable may raise to simulate provider failures.
    """

    def __init__(self, responder: Union[str, Callable[[str], str]] = "A stub summary."):
        self._responder = responder
        self.prompts: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if callable(self._responder):
            return self._responder(prompt)
        return self._responder


class RecordingSleeper:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
