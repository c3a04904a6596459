"""Backend drivers and the registry that maps a ``driver`` setting to one.

Example:
    ```python
    from dbmigrate.drivers import connect, register_driver

    register_driver("mydb", MyDriver)
    driver = connect(config)
    ```
"""

import logging

from dbmigrate.drivers.base import Driver
from dbmigrate.drivers.sqlite import SQLiteDriver
from dbmigrate.exceptions import ConfigurationError, DBMigrateError, ExecutorError
from dbmigrate.models import ResolvedConfiguration

logger = logging.getLogger(__name__)

_DRIVERS: dict[str, type[Driver]] = {
    "sqlite3": SQLiteDriver,
    "sqlite": SQLiteDriver,
}


def register_driver(name: str, driver_cls: type[Driver]) -> None:
    """Make ``driver_cls`` available under the ``driver`` setting ``name``."""
    _DRIVERS[name] = driver_cls


def get_driver_class(name: str | None) -> type[Driver]:
    if not name:
        raise ConfigurationError("No driver configured for this environment")
    try:
        return _DRIVERS[name]
    except KeyError:
        known = ", ".join(sorted(_DRIVERS))
        raise ConfigurationError(f"Unknown driver '{name}' (available: {known})") from None


def connect(config: ResolvedConfiguration) -> Driver:
    """Open a driver connection for ``config``.

    Raises:
        ConfigurationError: If the driver is unknown.
        ExecutorError: If the connection could not be opened.
    """
    driver_cls = get_driver_class(config.driver)
    try:
        driver = driver_cls.connect(config.settings)
    except DBMigrateError:
        raise
    except Exception as e:
        raise ExecutorError(f"Failed to connect to {config.env}: {e}", step="connect") from e

    logger.debug(f"Connected using {config.driver} driver")
    return driver


__all__ = [
    "Driver",
    "SQLiteDriver",
    "connect",
    "get_driver_class",
    "register_driver",
]
