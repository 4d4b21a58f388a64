"""
Services container module for repodoc.

Wires configuration, storage, the text client and the services into one
object shared by the CLI commands.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from repodoc.core.archive_extractor import ArchiveExtractor
from repodoc.core.config import RepoDocConfig, load_config
from repodoc.core.language_registry import LanguageRegistry, get_default_registry
from repodoc.infrastructure import (
    ByteStoreInterface,
    LocalByteStore,
    TextClientInterface,
    create_text_client,
)
from repodoc.services.analysis_cache import AnalysisCache
from repodoc.services.documentation_service import DocumentationSynthesizer
from repodoc.services.project_service import ProjectService


@dataclass
class ServicesContainer:
    """
    Container holding all shared service instances.

    Attributes:
        config: Application configuration
        store: Byte store holding extracted projects
        text_client: Client for the text-generation provider
        cache: Analysis cache in front of the text client
        synthesizer: Documentation synthesizer
        projects: Caller-facing project operations
    """

    config: RepoDocConfig
    store: ByteStoreInterface
    text_client: TextClientInterface
    cache: AnalysisCache
    synthesizer: DocumentationSynthesizer
    projects: ProjectService

    async def close(self) -> None:
        close = getattr(self.text_client, "close", None)
        if close is not None:
            await close()


def build_services(
    config: RepoDocConfig,
    store: ByteStoreInterface,
    text_client: TextClientInterface,
    registry: Optional[LanguageRegistry] = None,
) -> ServicesContainer:
    """
    Assemble services around an existing store and text client.

    Tests use this with in-memory fakes; create_services() uses it with the
    real implementations.
    """
    registry = registry or get_default_registry()
    selection = config.selection

    cache = AnalysisCache(
        text_client,
        max_entries=config.cache.max_entries,
        ttl_seconds=config.cache.ttl_seconds,
        registry=registry,
    )
    synthesizer = DocumentationSynthesizer(
        text_client,
        registry=registry,
        key_file_count=selection.key_file_count,
        per_file_cap=selection.per_file_cap,
        synthesis_char_cap=selection.synthesis_char_cap,
        omitted_preview=selection.omitted_preview,
        max_concurrency=selection.max_concurrency,
    )
    extractor = ArchiveExtractor(
        max_entries=config.extraction.max_entries,
        max_total_bytes=config.extraction.max_total_bytes,
    )
    projects = ProjectService(
        store,
        extractor,
        cache,
        synthesizer,
        text_client,
        analysis_file_cap=selection.analysis_file_cap,
        max_depth=config.tree.max_depth,
        max_nodes=config.tree.max_nodes,
    )
    return ServicesContainer(
        config=config,
        store=store,
        text_client=text_client,
        cache=cache,
        synthesizer=synthesizer,
        projects=projects,
    )


def create_services(
    config_path: Optional[Path] = None,
    storage_root: Optional[Path] = None,
    config: Optional[RepoDocConfig] = None,
) -> ServicesContainer:
    """
    Create and initialize all services.

    Args:
        config_path: Optional path to a configuration file. If None, uses
                    environment variables and defaults.
        storage_root: Optional override for the byte store root directory.
        config: Already loaded configuration; config_path is ignored when given.

    Returns:
        ServicesContainer with all initialized services.
    """
    config = config or load_config(config_path)

    store = LocalByteStore(storage_root or Path(config.storage.root))

    provider = config.provider
    text_client = create_text_client(
        api_url=provider.api_url,
        api_key=provider.api_key,
        model=provider.model,
        max_tokens=provider.max_tokens,
        timeout=provider.timeout,
        max_attempts=provider.max_attempts,
        cooldown_seconds=provider.cooldown_seconds,
        default_wait_seconds=provider.default_wait_seconds,
        max_wait_seconds=provider.max_wait_seconds,
    )

    return build_services(config, store, text_client)
