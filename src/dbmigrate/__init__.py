"""dbmigrate - database migration and seed runner.

Resolves a migration command (``up``, ``down``, ``reset``, ``create``,
``seed``, ``db:create``/``db:drop``) into an ordered execution request and
runs it against a pluggable driver.

Quick Start:
    ```python
    from dbmigrate import DBMigrate, RunOptions

    dbm = DBMigrate(RunOptions(env="dev"))
    dbm.up()
    ```
"""

from dbmigrate.__version__ import __version__
from dbmigrate.api import DBMigrate
from dbmigrate.exceptions import (
    CloseError,
    ConfigurationError,
    DBMigrateError,
    DirectoryCreationError,
    ExecutorError,
    InvalidActionError,
    ScaffoldError,
)
from dbmigrate.models import COUNT_ALL, Action, Directive, ResolvedConfiguration, RunOptions

__all__ = [
    "COUNT_ALL",
    "Action",
    "CloseError",
    "ConfigurationError",
    "DBMigrate",
    "DBMigrateError",
    "Directive",
    "DirectoryCreationError",
    "ExecutorError",
    "InvalidActionError",
    "ResolvedConfiguration",
    "RunOptions",
    "ScaffoldError",
    "__version__",
]
