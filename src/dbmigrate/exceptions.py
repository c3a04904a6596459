"""Error taxonomy for dbmigrate.

Every failure this package reports is a ``DBMigrateError``. None of them is
retried: a migration run that failed against a possibly partial backend state
must be looked at by a human, so the CLI maps all of them to exit status 1.
"""

from pathlib import Path


class DBMigrateError(Exception):
    """Base class for all dbmigrate errors."""

    exit_code = 1
    show_usage = False


class InvalidActionError(DBMigrateError):
    """The command grammar could not be parsed (unknown action, missing name)."""

    show_usage = True


class ConfigurationError(DBMigrateError):
    """Missing environment, unreadable config file, or malformed connection URL."""


class DirectoryCreationError(DBMigrateError):
    """A scaffold directory could not be created."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to create directory at {path}: {reason}")


class ScaffoldError(DBMigrateError):
    """A migration template could not be written."""


class ExecutorError(DBMigrateError):
    """Failure reported by the executor or driver.

    Attributes:
        step: The coordination step that failed (connect, ledger, run, seed, database).
    """

    def __init__(self, message: str, step: str = "run") -> None:
        self.step = step
        super().__init__(message)


class CloseError(DBMigrateError):
    """The driver connection could not be closed."""
