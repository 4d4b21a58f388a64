"""
Language registry for mapping file extensions to languages.

The registry doubles as the text allow-list: a path is text-like exactly when
its extension (or, for extension-less files such as ``Dockerfile``, its name)
is registered.
"""

import logging
import posixpath
from pathlib import Path, PurePosixPath

import yaml

logger = logging.getLogger(__name__)

# Default path to the languages configuration file
_DEFAULT_LANGUAGES_CONFIG = Path(__file__).parent / "languages.yaml"


class LanguageRegistry:
    """
    Extensible registry for mapping file extensions to languages.

    Example:
        >>> registry = LanguageRegistry()
        >>> registry.register("elixir", [".ex", ".exs"])
        >>> registry.detect(".ex")
        'elixir'
        >>> registry.detect_from_path("docker/Dockerfile")
        'dockerfile'
    """

    def __init__(self, load_defaults: bool = True):
        """
        Initialize the language registry.

        Args:
            load_defaults: If True, load default language mappings from languages.yaml.
        """
        self._extension_to_language: dict[str, str] = {}
        self._language_to_extensions: dict[str, set[str]] = {}

        if load_defaults:
            self._load_from_yaml(_DEFAULT_LANGUAGES_CONFIG)

    @classmethod
    def from_yaml(cls, config_path: Path | str) -> "LanguageRegistry":
        """
        Create a LanguageRegistry from a YAML configuration file.

        Raises:
            ValueError: If the config file format is invalid
        """
        registry = cls(load_defaults=False)
        registry._load_from_yaml(Path(config_path))
        return registry

    def _load_from_yaml(self, config_path: Path) -> None:
        """
        Load language mappings from a YAML file.

        Expected format:
            language_name:
              - .ext1
              - filename
        """
        if not config_path.exists():
            logger.warning(f"Languages config not found: {config_path}, using empty registry")
            return

        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse languages config: {e}")
            raise ValueError(f"Invalid YAML in languages config: {e}") from e

        if data is None:
            return

        if not isinstance(data, dict):
            raise ValueError(f"Invalid languages config format: expected dict, got {type(data)}")

        for language, extensions in data.items():
            if not isinstance(extensions, list):
                logger.warning(
                    f"Invalid extensions for {language}: expected list, got {type(extensions)}"
                )
                continue
            for ext in extensions:
                self._add_mapping(str(ext), str(language))

    def _add_mapping(self, extension: str, language: str) -> None:
        ext_lower = extension.lower()
        self._extension_to_language[ext_lower] = language
        self._language_to_extensions.setdefault(language, set()).add(ext_lower)

    def register(self, language: str, extensions: list[str]) -> "LanguageRegistry":
        """Register a language with its extensions. Returns self for chaining."""
        for ext in extensions:
            self._add_mapping(ext, language)
        return self

    def detect(self, extension: str) -> str:
        """Detect language from an extension such as '.py'; 'unknown' if unregistered."""
        return self._extension_to_language.get(extension.lower(), "unknown")

    def detect_from_path(self, file_path: str | PurePosixPath) -> str:
        """
        Detect language from a relative or absolute path.

        Exact file names are checked before the extension, so '.env' and
        'Dockerfile' resolve even though they have no conventional suffix.
        """
        name = posixpath.basename(str(file_path).replace("\\", "/")).lower()
        if name in self._extension_to_language:
            return self._extension_to_language[name]
        return self.detect(PurePosixPath(name).suffix)

    def is_text_like(self, file_path: str | PurePosixPath) -> bool:
        """Return True if the path is on the text allow-list."""
        return self.detect_from_path(file_path) != "unknown"

    def get_all_extensions(self) -> set[str]:
        """Get all registered file extensions and names."""
        return set(self._extension_to_language.keys())

    def get_all_languages(self) -> set[str]:
        """Get all registered language identifiers."""
        return set(self._language_to_extensions.keys())


# Global default registry instance
_default_registry = LanguageRegistry()


def get_default_registry() -> LanguageRegistry:
    """Get the global default language registry."""
    return _default_registry
