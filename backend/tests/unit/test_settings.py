"""Unit tests for StoreSettings configuration resolution."""

from pathlib import Path

import pytest

from docstore import config
from docstore.config import StoreSettings
from docstore.exceptions import ConfigurationError, MissingConfigurationError


def _settings(**values) -> StoreSettings:
    return StoreSettings(_env_file=None, **values)


def test_require_returns_value() -> None:
    settings = _settings(endpoint="mongodb://localhost:27017", database="shop")

    assert settings.require("endpoint") == "mongodb://localhost:27017"
    assert settings.require("database") == "shop"


@pytest.mark.parametrize("value", ["", "   "])
def test_require_raises_for_empty(value: str) -> None:
    settings = _settings(database=value)

    with pytest.raises(MissingConfigurationError) as exc_info:
        settings.require("database")
    assert exc_info.value.key == "database"


def test_auth_key_accepts_app_settings_name() -> None:
    settings = StoreSettings(_env_file=None, authKey="secret")

    assert settings.auth_key == "secret"
    assert settings.require("authKey") == "secret"


def test_environment_variables_use_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOCSTORE_ENDPOINT", "mongodb://db:27017")
    monkeypatch.setenv("DOCSTORE_DATABASE", "inventory")
    monkeypatch.setenv("DOCSTORE_AUTH_KEY", "from-env")

    settings = StoreSettings(_env_file=None)

    assert settings.endpoint == "mongodb://db:27017"
    assert settings.database == "inventory"
    assert settings.auth_key == "from-env"


@pytest.mark.parametrize("name", ["AUTH_KEY", "AUTHKEY"])
def test_unprefixed_auth_key_variable_is_ignored(monkeypatch: pytest.MonkeyPatch, name: str) -> None:
    monkeypatch.delenv("DOCSTORE_AUTH_KEY", raising=False)
    monkeypatch.setenv(name, "unrelated-secret")

    settings = StoreSettings(_env_file=None)

    assert settings.auth_key == ""


def test_load_yaml_config_merges_well_known_keys(tmp_path: Path) -> None:
    config_path = tmp_path / "docstore.yaml"
    config_path.write_text(
        "endpoint: mongodb://yaml:27017\n"
        "authKey: yaml-key\n"
        "database: orders-db\n"
        "username: svc\n"
        "unknown: ignored\n",
        encoding="utf-8",
    )
    settings = _settings()

    settings.load_yaml_config(config_path)

    assert settings.endpoint == "mongodb://yaml:27017"
    assert settings.auth_key == "yaml-key"
    assert settings.database == "orders-db"
    assert settings.username == "svc"


def test_load_yaml_config_missing_file_keeps_defaults(tmp_path: Path) -> None:
    settings = _settings(database="shop")

    settings.load_yaml_config(tmp_path / "absent.yaml")

    assert settings.database == "shop"


@pytest.mark.parametrize("content", ["endpoint: [unclosed\n", "- just\n- a list\n"])
def test_load_yaml_config_rejects_bad_content(tmp_path: Path, content: str) -> None:
    config_path = tmp_path / "docstore.yaml"
    config_path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        _settings().load_yaml_config(config_path)


def test_get_settings_reads_config_file_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "docstore.yaml").write_text("database: cached-db\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DOCSTORE_DATABASE", raising=False)
    config.get_settings.cache_clear()

    try:
        first = config.get_settings()
        second = config.get_settings()
    finally:
        config.get_settings.cache_clear()

    assert first is second
    assert first.database == "cached-db"


def test_load_yaml_config_coerces_numeric_values(tmp_path: Path) -> None:
    config_path = tmp_path / "docstore.yaml"
    config_path.write_text("database: 2024\nauthKey: 12345\n", encoding="utf-8")
    settings = _settings()

    settings.load_yaml_config(config_path)

    assert settings.database == "2024"
    assert settings.auth_key == "12345"


def test_load_yaml_config_rejects_invalid_value(tmp_path: Path) -> None:
    config_path = tmp_path / "docstore.yaml"
    config_path.write_text("server_selection_timeout_ms: soon\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="server_selection_timeout_ms"):
        _settings().load_yaml_config(config_path)
