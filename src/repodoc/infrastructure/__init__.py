"""Infrastructure layer for repodoc."""

from .byte_store import (
    ByteStoreError,
    ByteStoreInterface,
    ByteStoreNotFoundError,
    LocalByteStore,
    StoreEntry,
    normalize_key,
)
from .text_client import (
    CallGate,
    ProviderError,
    TextClientInterface,
    TextGenerationClient,
    create_text_client,
)

__all__ = [
    "ByteStoreInterface",
    "ByteStoreError",
    "ByteStoreNotFoundError",
    "LocalByteStore",
    "StoreEntry",
    "normalize_key",
    "TextClientInterface",
    "TextGenerationClient",
    "CallGate",
    "ProviderError",
    "create_text_client",
]
