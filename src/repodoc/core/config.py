"""
Configuration module for repodoc.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from repodoc.core.budget import COMPACT_FILE_CAP, DEFAULT_OMITTED_PREVIEW, EXTENDED_FILE_CAP

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section, {})
    return section_defaults.get(key, fallback)


@dataclass
class ProviderConfig:
    """Configuration for the text-generation provider."""

    api_key: str = field(default_factory=lambda: _get_default("provider", "api_key", ""))
    api_url: str = field(
        default_factory=lambda: _get_default(
            "provider", "api_url", "https://openrouter.ai/api/v1/chat/completions"
        )
    )
    model: str = field(
        default_factory=lambda: _get_default("provider", "model", "deepseek/deepseek-chat")
    )
    max_tokens: int = field(default_factory=lambda: _get_default("provider", "max_tokens", 1024))
    timeout: float = field(default_factory=lambda: _get_default("provider", "timeout", 60.0))
    max_attempts: int = field(default_factory=lambda: _get_default("provider", "max_attempts", 5))
    cooldown_seconds: float = field(
        default_factory=lambda: _get_default("provider", "cooldown_seconds", 1.0)
    )
    default_wait_seconds: float = field(
        default_factory=lambda: _get_default("provider", "default_wait_seconds", 5.0)
    )
    max_wait_seconds: float = field(
        default_factory=lambda: _get_default("provider", "max_wait_seconds", 120.0)
    )


@dataclass
class ExtractionConfig:
    """Configuration for archive extraction limits."""

    max_entries: int = field(
        default_factory=lambda: _get_default("extraction", "max_entries", 20000)
    )
    max_total_bytes: int = field(
        default_factory=lambda: _get_default("extraction", "max_total_bytes", 500 * 1024 * 1024)
    )


@dataclass
class TreeConfig:
    """Configuration for file tree construction."""

    max_depth: int = field(default_factory=lambda: _get_default("tree", "max_depth", 64))
    max_nodes: int = field(default_factory=lambda: _get_default("tree", "max_nodes", 50000))


@dataclass
class SelectionConfig:
    """Configuration for key file selection and prompt budgeting."""

    key_file_count: int = field(
        default_factory=lambda: _get_default("selection", "key_file_count", 8)
    )
    per_file_cap: int = field(
        default_factory=lambda: _get_default("selection", "per_file_cap", COMPACT_FILE_CAP)
    )
    analysis_file_cap: int = field(
        default_factory=lambda: _get_default(
            "selection", "analysis_file_cap", EXTENDED_FILE_CAP
        )
    )
    synthesis_char_cap: int = field(
        default_factory=lambda: _get_default("selection", "synthesis_char_cap", 10000)
    )
    omitted_preview: int = field(
        default_factory=lambda: _get_default(
            "selection", "omitted_preview", DEFAULT_OMITTED_PREVIEW
        )
    )
    max_concurrency: int = field(
        default_factory=lambda: _get_default("selection", "max_concurrency", 4)
    )


@dataclass
class CacheConfig:
    """Configuration for the analysis cache."""

    max_entries: int = field(default_factory=lambda: _get_default("cache", "max_entries", 1024))
    ttl_seconds: Optional[float] = field(
        default_factory=lambda: _get_default("cache", "ttl_seconds", None)
    )


@dataclass
class StorageConfig:
    """Configuration for the byte store."""

    root: str = field(default_factory=lambda: _get_default("storage", "root", ".repodoc/storage"))


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )


@dataclass
class RepoDocConfig:
    """Main configuration class for repodoc."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "RepoDocConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            RepoDocConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the file format is unsupported
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "RepoDocConfig":
        """Create RepoDocConfig from a dictionary."""
        config = cls()

        sections = {
            "provider": ProviderConfig,
            "extraction": ExtractionConfig,
            "tree": TreeConfig,
            "selection": SelectionConfig,
            "cache": CacheConfig,
            "storage": StorageConfig,
            "logging": LoggingConfig,
        }
        for name, section_cls in sections.items():
            if name in data:
                setattr(config, name, section_cls(**data[name]))

        return config

    def apply_env_overrides(self) -> "RepoDocConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: REPODOC_<SECTION>_<KEY>
        Examples:
            - REPODOC_PROVIDER_API_KEY
            - REPODOC_PROVIDER_MODEL
            - REPODOC_SELECTION_KEY_FILE_COUNT
            - REPODOC_STORAGE_ROOT
            - REPODOC_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # Provider config
            "REPODOC_PROVIDER_API_KEY": ("provider", "api_key", str),
            "REPODOC_PROVIDER_API_URL": ("provider", "api_url", str),
            "REPODOC_PROVIDER_MODEL": ("provider", "model", str),
            "REPODOC_PROVIDER_MAX_TOKENS": ("provider", "max_tokens", int),
            "REPODOC_PROVIDER_TIMEOUT": ("provider", "timeout", float),
            "REPODOC_PROVIDER_MAX_ATTEMPTS": ("provider", "max_attempts", int),
            "REPODOC_PROVIDER_COOLDOWN_SECONDS": ("provider", "cooldown_seconds", float),
            "REPODOC_PROVIDER_DEFAULT_WAIT_SECONDS": ("provider", "default_wait_seconds", float),
            "REPODOC_PROVIDER_MAX_WAIT_SECONDS": ("provider", "max_wait_seconds", float),
            # Extraction config
            "REPODOC_EXTRACTION_MAX_ENTRIES": ("extraction", "max_entries", int),
            "REPODOC_EXTRACTION_MAX_TOTAL_BYTES": ("extraction", "max_total_bytes", int),
            # Tree config
            "REPODOC_TREE_MAX_DEPTH": ("tree", "max_depth", int),
            "REPODOC_TREE_MAX_NODES": ("tree", "max_nodes", int),
            # Selection config
            "REPODOC_SELECTION_KEY_FILE_COUNT": ("selection", "key_file_count", int),
            "REPODOC_SELECTION_PER_FILE_CAP": ("selection", "per_file_cap", int),
            "REPODOC_SELECTION_ANALYSIS_FILE_CAP": ("selection", "analysis_file_cap", int),
            "REPODOC_SELECTION_SYNTHESIS_CHAR_CAP": ("selection", "synthesis_char_cap", int),
            "REPODOC_SELECTION_OMITTED_PREVIEW": ("selection", "omitted_preview", int),
            "REPODOC_SELECTION_MAX_CONCURRENCY": ("selection", "max_concurrency", int),
            # Cache config
            "REPODOC_CACHE_MAX_ENTRIES": ("cache", "max_entries", int),
            "REPODOC_CACHE_TTL_SECONDS": ("cache", "ttl_seconds", float),
            # Storage config
            "REPODOC_STORAGE_ROOT": ("storage", "root", str),
            # Logging config
            "REPODOC_LOGGING_LEVEL": ("logging", "level", str),
            "REPODOC_LOGGING_FORMAT": ("logging", "format", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        # Conventional provider key name, used when the prefixed one is absent
        if not self.provider.api_key:
            self.provider.api_key = os.environ.get("OPENROUTER_API_KEY", "")

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def load_config(
    config_path: Optional[Path | str] = None, apply_env: bool = True
) -> RepoDocConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        RepoDocConfig instance
    """
    if config_path:
        config = RepoDocConfig.from_file(config_path)
    else:
        config = RepoDocConfig()

    if apply_env:
        config.apply_env_overrides()

    return config


def configure_logging(config: LoggingConfig, handler: Optional[logging.Handler] = None) -> None:
    """
    Configure root logging from a LoggingConfig.

    Args:
        config: Logging section of the configuration.
        handler: Optional handler (e.g. a rich handler) to install instead of stderr.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    kwargs: dict[str, Any] = {"level": level, "format": config.format, "force": True}
    if handler is not None:
        kwargs["handlers"] = [handler]
    logging.basicConfig(**kwargs)
