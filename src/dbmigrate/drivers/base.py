"""Driver contract.

A driver owns one backend connection. Besides database administration it
exposes the small set of ledger and statement primitives the executors need;
it never decides which migrations run.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import Any

from dbmigrate.exceptions import ExecutorError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: str) -> str:
    """Reject table names that cannot be safely quoted."""
    if not _IDENTIFIER.match(name):
        raise ExecutorError(f"Invalid table name: {name!r}", step="ledger")
    return name


class Driver(ABC):
    """Abstract backend driver.

    Attributes:
        settings: Connection settings the driver was created from.
    """

    def __init__(self, settings: dict[str, Any]) -> None:
        self.settings = settings

    @classmethod
    @abstractmethod
    def connect(cls, settings: dict[str, Any]) -> "Driver":
        """Open a connection described by ``settings``."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection."""

    @abstractmethod
    def create_database(self, name: str, if_not_exists: bool = True) -> None:
        """Create database ``name``; existing databases are fine when ``if_not_exists``."""

    @abstractmethod
    def drop_database(self, name: str, if_exists: bool = True) -> None:
        """Drop database ``name``; missing databases are fine when ``if_exists``."""

    @abstractmethod
    def create_ledger_table(self, table: str) -> None:
        """Create the ledger table if it does not exist."""

    @abstractmethod
    def applied_names(self, table: str) -> list[str]:
        """Names recorded in the ledger, oldest first; empty if the table is absent."""

    @abstractmethod
    def record(self, table: str, name: str) -> None:
        """Add ``name`` to the ledger."""

    @abstractmethod
    def remove(self, table: str, name: str) -> None:
        """Delete ``name`` from the ledger."""

    @abstractmethod
    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> list[Any]:
        """Run one statement and return its rows."""

    @abstractmethod
    def execute_script(self, script: str) -> None:
        """Run every statement in ``script`` in order."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[Iterator["Driver"]]:
        """Context manager committing on success and rolling back on error."""
