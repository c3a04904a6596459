"""Configuration resolution for dbmigrate.

Produces exactly one ``ResolvedConfiguration`` per invocation, either from the
``DATABASE_URL`` environment variable or from a config file keyed by
environment name.

Config file layout (JSON or YAML):
    ```json
    {
      "defaultEnv": "dev",
      "dev": {"driver": "sqlite3", "filename": "dev.db"},
      "test": "sqlite3:///test.db",
      "prod": {
        "driver": "pg",
        "host": "db.internal",
        "password": {"ENV": "PROD_DB_PASSWORD"}
      }
    }
    ```
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, unquote, urlparse

import yaml

from dbmigrate.exceptions import ConfigurationError
from dbmigrate.models import ResolvedConfiguration, RunOptions

logger = logging.getLogger(__name__)

DATABASE_URL_VAR = "DATABASE_URL"
DEFAULT_ENV = "dev"
DEFAULT_ENV_KEY = "defaultEnv"
ENV_REFERENCE_KEY = "ENV"
SQLITE_DRIVERS = frozenset({"sqlite", "sqlite3"})


def parse_database_url(url: str) -> dict[str, Any]:
    """Parse a connection URL into a settings mapping.

    Args:
        url: URL such as ``pg://user:pass@host:5432/app`` or ``sqlite3:///app.db``.

    Returns:
        Settings with ``driver`` and whichever connection fields the URL carries.

    Raises:
        ConfigurationError: If the URL has no scheme or an invalid port.
    """
    # Messages never echo the URL, it may contain a password
    if "://" not in url:
        raise ConfigurationError("Malformed connection string: expected driver://...")

    parsed = urlparse(url)
    if not parsed.scheme:
        raise ConfigurationError("Malformed connection string: missing driver")

    settings: dict[str, Any] = {"driver": parsed.scheme}

    if parsed.scheme in SQLITE_DRIVERS:
        path = parsed.path
        if not parsed.netloc and path.startswith("/"):
            path = path[1:]
        filename = parsed.netloc + path
        if not filename:
            raise ConfigurationError("Malformed connection string: missing database file")
        settings["filename"] = filename
    else:
        if not parsed.hostname:
            raise ConfigurationError("Malformed connection string: missing host")
        try:
            port = parsed.port
        except ValueError as e:
            raise ConfigurationError(f"Malformed connection string: {e}") from e

        settings["host"] = parsed.hostname
        if port is not None:
            settings["port"] = port
        if parsed.username:
            settings["user"] = unquote(parsed.username)
        if parsed.password:
            settings["password"] = unquote(parsed.password)
        database = parsed.path.lstrip("/")
        if database:
            settings["database"] = unquote(database)

    for key, value in parse_qsl(parsed.query):
        settings.setdefault(key, value)

    return settings


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a JSON or YAML config file.

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping.
    """
    if not path.exists():
        raise ConfigurationError(f"Could not find config file at {path}")

    try:
        content = path.read_text()
        if path.suffix in (".yml", ".yaml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping of environments")

    return data


def _resolve_env_refs(value: Any, environ: Mapping[str, str]) -> Any:
    """Replace ``{"ENV": "VAR"}`` values with the environment variable's value."""
    if isinstance(value, dict):
        if set(value) == {ENV_REFERENCE_KEY}:
            var = value[ENV_REFERENCE_KEY]
            if var not in environ:
                raise ConfigurationError(f"Environment variable {var} is not set")
            return environ[var]
        return {key: _resolve_env_refs(item, environ) for key, item in value.items()}
    return value


def select_environment(
    data: dict[str, Any],
    env: str | None,
    environ: Mapping[str, str],
) -> tuple[str, dict[str, Any]]:
    """Pick the settings for ``env`` out of a loaded config file.

    Returns:
        Tuple of (environment name, settings).
    """
    env_name = env or data.get(DEFAULT_ENV_KEY) or DEFAULT_ENV
    if env_name == DEFAULT_ENV_KEY or env_name not in data:
        raise ConfigurationError(f"Environment '{env_name}' not found in config")

    entry = _resolve_env_refs(data[env_name], environ)
    if isinstance(entry, str):
        return env_name, parse_database_url(entry)
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Settings for environment '{env_name}' must be a mapping")

    return env_name, dict(entry)


def resolve_configuration(
    options: RunOptions,
    environ: Mapping[str, str] | None = None,
) -> ResolvedConfiguration:
    """Resolve the connection settings for this invocation.

    ``DATABASE_URL`` replaces the config file entirely when it is set.

    Args:
        options: Invocation flags (environment name, config path, verbosity).
        environ: Environment to read from. Defaults to ``os.environ``.

    Returns:
        The resolved configuration.

    Raises:
        ConfigurationError: If the environment or connection string is invalid.
    """
    if environ is None:
        environ = os.environ

    url = environ.get(DATABASE_URL_VAR)
    if url:
        env_name = options.env or DEFAULT_ENV
        settings = parse_database_url(url)
    else:
        data = load_config_file(options.config_path)
        env_name, settings = select_environment(data, options.env, environ)

    config = ResolvedConfiguration(env=env_name, settings=settings)

    if options.verbose:
        logger.info(f"Using {config.env} settings: {config.masked_settings()}")

    return config
