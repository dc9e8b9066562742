"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from docstore.exceptions import ConfigurationError, MissingConfigurationError

logger = logging.getLogger(__name__)

# Well-known app-settings keys mapped to their settings field
_SETTING_KEYS = {
    "endpoint": "endpoint",
    "authKey": "auth_key",
    "database": "database",
    "username": "username",
}


class StoreSettings(BaseSettings):
    """Connection settings for the document store.

    Values come from ``DOCSTORE_*`` environment variables, a ``.env`` file and
    optionally a YAML app-settings file using the keys ``endpoint``,
    ``authKey`` and ``database``. The auth key is read from the environment
    only as ``DOCSTORE_AUTH_KEY``. Nothing is validated at load time; use
    :meth:`require` when a value is actually needed.
    """

    # Connection
    endpoint: str = ""
    auth_key: str = ""
    username: str = ""
    database: str = ""

    # Client tuning
    app_name: str = "docstore"
    server_selection_timeout_ms: int = 30000

    # Logging / observability
    log_level: str = "INFO"
    logfire_token: str = ""

    config_file: Path = Path("docstore.yaml")

    model_config = SettingsConfigDict(
        env_prefix="DOCSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )

    def __init__(self, **values: Any) -> None:
        # authKey is accepted as a keyword only; the environment is read as DOCSTORE_AUTH_KEY
        if "authKey" in values:
            values["auth_key"] = values.pop("authKey")
        super().__init__(**values)

    def require(self, key: str) -> str:
        """Return a non-empty configuration value or raise MissingConfigurationError.

        ``key`` is either a well-known app-settings key (``authKey``) or a
        field name (``auth_key``).
        """
        field_name = _SETTING_KEYS.get(key, key)
        value = getattr(self, field_name, None)
        if value is None or not str(value).strip():
            raise MissingConfigurationError(key)
        return str(value)

    def load_yaml_config(self, path: Path | str | None = None) -> None:
        """Load and merge a YAML app-settings file."""
        config_path = Path(path) if path is not None else self.config_file

        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}. Using environment only.")
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML config {config_path}: {e}") from e

        if not yaml_config:
            logger.warning(f"Empty config file: {config_path}")
            return

        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        self._merge(yaml_config, config_path)
        logger.info(f"Loaded configuration from {config_path}")

    def _merge(self, values: dict[str, Any], config_path: Path) -> None:
        for key, value in values.items():
            field_name = _SETTING_KEYS.get(key, key)
            if field_name not in type(self).model_fields:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            # YAML turns bare numbers into ints; connection values are strings
            if key in _SETTING_KEYS and value is not None:
                value = str(value)
            try:
                setattr(self, field_name, value)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid value for {key} in {config_path}: {e}") from e


@lru_cache
def get_settings() -> StoreSettings:
    """Get singleton StoreSettings instance."""
    settings = StoreSettings()
    settings.load_yaml_config()
    return settings
