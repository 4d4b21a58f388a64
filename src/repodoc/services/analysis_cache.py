"""
Content-addressed analysis cache.

Wraps a text client so that each distinct (path, content) pair is sent to the
provider at most once while its record stays resident.
"""

import asyncio
import hashlib
import logging
import re
import time
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Optional

from repodoc.core.language_registry import LanguageRegistry, get_default_registry
from repodoc.infrastructure.text_client import TextClientInterface

from .models import AnalysisRecord

logger = logging.getLogger(__name__)

PURPOSE_PROMPT = """Here is the file `{path}` from a software project:

---
{content}
---

Explain in 2-4 sentences what this file does and how it fits into the project. Output only the explanation, without markdown formatting."""

DEPENDENCY_PROMPT = """Here is the file `{path}` from a software project:

---
{content}
---

List the external libraries, packages or modules this file depends on, one name per line. Output only the names. If it has none, answer "none"."""

_LIST_MARKER = re.compile(r"^(?:[-*•+]|\d+[.)])\s*")
_NONE_ANSWERS = {"none", "none.", "n/a", "no dependencies", "no dependencies.", "-"}


def content_key(path: str, content: str) -> str:
    """SHA-256 hex digest identifying a (path, content) pair."""
    digest = hashlib.sha256()
    digest.update(path.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(content.encode("utf-8"))
    return digest.hexdigest()


def parse_dependency_list(text: str) -> list[str]:
    """
    Parse a one-name-per-line answer into an ordered, de-duplicated list.

    Bullet markers, numbering and backticks are stripped; "none" style
    answers yield an empty list.
    """
    names: list[str] = []
    seen: set[str] = set()
    for line in text.splitlines():
        name = _LIST_MARKER.sub("", line.strip()).strip().strip("`").strip()
        if not name or name.lower() in _NONE_ANSWERS:
            continue
        if name not in seen:
            seen.add(name)
            names.append(name)
    return names


class AnalysisCache:
    """
    Size-bounded LRU of AnalysisRecords keyed by content digest.

    Entries optionally expire after ttl_seconds. The cache is injected where
    needed; there is no module-level instance.
    """

    def __init__(
        self,
        client: TextClientInterface,
        max_entries: int = 1024,
        ttl_seconds: Optional[float] = None,
        registry: Optional[LanguageRegistry] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            client: Text client used on cache misses
            max_entries: Records kept before the least recently used is evicted
            ttl_seconds: Optional lifetime of a record; None keeps records until evicted
            registry: Language registry used to label records
            clock: Monotonic time source (injectable for tests)
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._client = client
        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._registry = registry or get_default_registry()
        self._clock = clock
        self._entries: OrderedDict[str, tuple[AnalysisRecord, float]] = OrderedDict()
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, path: str, content: str) -> Optional[AnalysisRecord]:
        """Return the cached record for (path, content) without calling the provider."""
        key = content_key(path, content)
        async with self._lock:
            return self._lookup(key)

    async def analyze(self, path: str, content: str) -> AnalysisRecord:
        """
        Return the analysis for (path, content), calling the provider on a miss.

        Raises:
            ProviderError: If the provider call fails after its retry policy
        """
        key = content_key(path, content)
        async with self._lock:
            cached = self._lookup(key)
            if cached is not None:
                self._hits += 1
                return cached
            self._misses += 1

        logger.info(f"Analysis cache miss for {path}")
        record = await self._compute(path, content, key)

        async with self._lock:
            self._store(key, record)
        return record

    async def _compute(self, path: str, content: str, key: str) -> AnalysisRecord:
        purpose = await self._client.complete(PURPOSE_PROMPT.format(path=path, content=content))
        deps_text = await self._client.complete(DEPENDENCY_PROMPT.format(path=path, content=content))
        return AnalysisRecord(
            language=self._registry.detect_from_path(path),
            purpose=purpose,
            dependencies=tuple(parse_dependency_list(deps_text)),
            timestamp=datetime.now(timezone.utc).isoformat(),
            raw_content=content,
            content_key=key,
        )

    def _lookup(self, key: str) -> Optional[AnalysisRecord]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        record, stored_at = entry
        if self._ttl_seconds is not None and self._clock() - stored_at > self._ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return record

    def _store(self, key: str, record: AnalysisRecord) -> None:
        # Racing misses for the same key produce equal records; last write wins.
        self._entries[key] = (record, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted analysis {evicted[:12]}")

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._entries),
            "max_entries": self._max_entries,
        }
