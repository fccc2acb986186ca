"""
Configuration loading for the Tasks API.

Settings are read once at startup from an optional YAML settings file and the
environment, then frozen. The resulting ``Settings`` value is passed explicitly
to the app factory; nothing reads configuration after that.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_STRING = "Data Source=Tasks.db"
DEFAULT_SETTINGS_FILE = "appsettings.yaml"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

SETTINGS_FILE_ENV = "TASKS_API_SETTINGS"
CONNECTION_STRING_ENV = "TASKS_API_CONNECTION_STRING"
API_KEY_ENV = "TASKS_API_KEY"
LOG_LEVEL_ENV = "TASKS_API_LOG_LEVEL"

_SQLITE_URL_PREFIX = "sqlite:///"
_DATA_SOURCE_KEYS = ("data source", "datasource", "filename")
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigurationError(Exception):
    """Raised when required settings are missing or malformed."""


@dataclass(frozen=True)
class Settings:
    """Immutable process configuration."""
    api_key: str
    connection_string: str = DEFAULT_CONNECTION_STRING
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @property
    def database_path(self) -> str:
        return parse_connection_string(self.connection_string)


def parse_connection_string(connection_string: str) -> str:
    """
    Resolve a connection string to a SQLite database path.

    Accepts a bare path, a ``sqlite:///path`` URL, or the key/value form
    ``Data Source=path;...``.

    Raises:
        ConfigurationError: If no database path can be found
    """
    value = (connection_string or "").strip()
    if not value:
        raise ConfigurationError("Connection string is empty")

    if value.startswith(_SQLITE_URL_PREFIX):
        path = value[len(_SQLITE_URL_PREFIX):]
        if not path:
            raise ConfigurationError(f"No database path in connection string: {connection_string!r}")
        return path

    if "=" not in value:
        return value

    for part in value.split(";"):
        key, sep, item = part.partition("=")
        if sep and key.strip().lower() in _DATA_SOURCE_KEYS and item.strip():
            return item.strip()

    raise ConfigurationError(f"No data source in connection string: {connection_string!r}")


def _read_settings_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid settings file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Settings section '{name}' must be a mapping")
    return section


def load_settings(environ: Optional[Mapping[str, str]] = None,
                  settings_file: Optional[str] = None) -> Settings:
    """
    Build Settings from defaults, the YAML settings file and the environment.

    Environment variables override values from the settings file. The settings
    file is optional unless its path was given explicitly.

    Args:
        environ: Environment mapping, defaults to ``os.environ``
        settings_file: Path to the YAML settings file; falls back to
            ``$TASKS_API_SETTINGS`` and then ``appsettings.yaml``

    Raises:
        ConfigurationError: If the API key is missing or a source is malformed
    """
    if environ is None:
        environ = os.environ

    explicit = settings_file or environ.get(SETTINGS_FILE_ENV)
    path = Path(explicit or DEFAULT_SETTINGS_FILE)

    data: Dict[str, Any] = {}
    if path.is_file():
        data = _read_settings_file(path)
        logger.info(f"Loaded settings file: {path}")
    elif explicit:
        raise ConfigurationError(f"Settings file not found: {path}")

    connection_string = (
        environ.get(CONNECTION_STRING_ENV)
        or _section(data, "ConnectionStrings").get("MyDbConnection")
        or DEFAULT_CONNECTION_STRING
    )
    api_key = environ.get(API_KEY_ENV) or _section(data, "SecuritySettings").get("ApiKey")
    log_level = (
        environ.get(LOG_LEVEL_ENV)
        or _section(data, "Logging").get("LogLevel")
        or "INFO"
    )

    if not api_key:
        raise ConfigurationError(
            f"API key is not configured; set {API_KEY_ENV} or SecuritySettings.ApiKey"
        )

    log_level = str(log_level).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError(f"Unknown log level {log_level!r}; expected one of {_LOG_LEVELS}")

    settings = Settings(
        api_key=str(api_key),
        connection_string=str(connection_string),
        log_level=log_level
    )
    # Fail fast on a connection string we cannot use
    parse_connection_string(settings.connection_string)
    return settings
