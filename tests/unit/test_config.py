"""
Unit tests for configuration loading.
"""

import json

import pytest

from repodoc.core import config as config_module
from repodoc.core.budget import COMPACT_FILE_CAP, DEFAULT_OMITTED_PREVIEW, EXTENDED_FILE_CAP
from repodoc.core.config import RepoDocConfig, SelectionConfig, load_config

_ENV_VARS = (
    "REPODOC_PROVIDER_API_KEY",
    "REPODOC_PROVIDER_MODEL",
    "REPODOC_SELECTION_KEY_FILE_COUNT",
    "REPODOC_CACHE_TTL_SECONDS",
    "OPENROUTER_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = RepoDocConfig()

    assert config.provider.model == "deepseek/deepseek-chat"
    assert config.provider.api_key == ""
    assert config.selection.key_file_count == 8
    assert config.selection.per_file_cap == 1000
    assert config.selection.synthesis_char_cap == 10000
    assert config.cache.ttl_seconds is None


def test_from_yaml_partial_section(tmp_path):
    path = tmp_path / "repodoc.yaml"
    path.write_text("provider:\n  model: other/model\nselection:\n  key_file_count: 3\n")

    config = RepoDocConfig.from_file(path)

    assert config.provider.model == "other/model"
    assert config.provider.max_attempts == 5
    assert config.selection.key_file_count == 3


def test_from_json(tmp_path):
    path = tmp_path / "repodoc.json"
    path.write_text(json.dumps({"cache": {"max_entries": 10, "ttl_seconds": 60}}))

    config = RepoDocConfig.from_file(path)

    assert config.cache.max_entries == 10
    assert config.cache.ttl_seconds == 60


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RepoDocConfig.from_file(tmp_path / "nope.yaml")


def test_unsupported_suffix(tmp_path):
    path = tmp_path / "repodoc.ini"
    path.write_text("")

    with pytest.raises(ValueError):
        RepoDocConfig.from_file(path)
    with pytest.raises(ValueError):
        RepoDocConfig().save(path)


@pytest.mark.parametrize("suffix", [".yaml", ".json"])
def test_save_and_reload(tmp_path, suffix):
    config = RepoDocConfig()
    config.provider.model = "saved/model"
    config.tree.max_depth = 7
    path = tmp_path / "nested" / f"config{suffix}"

    config.save(path)

    assert RepoDocConfig.from_file(path).to_dict() == config.to_dict()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("REPODOC_PROVIDER_MODEL", "env/model")
    monkeypatch.setenv("REPODOC_SELECTION_KEY_FILE_COUNT", "12")
    monkeypatch.setenv("REPODOC_CACHE_TTL_SECONDS", "30")

    config = load_config()

    assert config.provider.model == "env/model"
    assert config.selection.key_file_count == 12
    assert config.cache.ttl_seconds == 30.0


def test_openrouter_key_fallback(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-fallback")

    assert load_config().provider.api_key == "sk-fallback"

    monkeypatch.setenv("REPODOC_PROVIDER_API_KEY", "sk-primary")

    assert load_config().provider.api_key == "sk-primary"


def test_env_not_applied_when_disabled(monkeypatch):
    monkeypatch.setenv("REPODOC_PROVIDER_MODEL", "env/model")

    assert load_config(apply_env=False).provider.model == "deepseek/deepseek-chat"


def _env_value(default):
    if isinstance(default, str):
        return "x", "x"
    if isinstance(default, int):
        return "7", 7
    return "7.5", 7.5


def test_every_key_has_env_override(monkeypatch):
    """Each REPODOC_<SECTION>_<KEY> variable reaches its configuration field."""
    expected = {}
    for section, values in RepoDocConfig().to_dict().items():
        for key, default in values.items():
            raw, converted = _env_value(default)
            monkeypatch.setenv(f"REPODOC_{section.upper()}_{key.upper()}", raw)
            expected[(section, key)] = converted

    config = load_config()

    for (section, key), value in expected.items():
        assert getattr(getattr(config, section), key) == value, f"{section}.{key}"


def test_selection_fallbacks_match_budget_caps(monkeypatch):
    monkeypatch.setattr(config_module, "_defaults_cache", {})

    selection = SelectionConfig()

    assert selection.per_file_cap == COMPACT_FILE_CAP
    assert selection.analysis_file_cap == EXTENDED_FILE_CAP
    assert selection.omitted_preview == DEFAULT_OMITTED_PREVIEW
