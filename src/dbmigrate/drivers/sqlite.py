"""SQLite driver built on the standard library ``sqlite3`` module."""

import logging
import re
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dbmigrate.drivers.base import Driver, validate_identifier
from dbmigrate.exceptions import ExecutorError

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

_COMMENTS = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)


def split_statements(script: str) -> list[str]:
    """Split a SQL script into complete statements.

    ``sqlite3.executescript`` commits any open transaction first, so scripts
    are executed one statement at a time instead.
    """
    statements: list[str] = []
    buffer = ""
    for line in script.splitlines(keepends=True):
        buffer += line
        if sqlite3.complete_statement(buffer):
            statements.append(buffer.strip())
            buffer = ""

    if _COMMENTS.sub("", buffer).strip():
        statements.append(buffer.strip())

    return [s for s in statements if _COMMENTS.sub("", s).strip().strip(";").strip()]


class SQLiteDriver(Driver):
    """Driver for file-backed (or in-memory) SQLite databases.

    Settings:
        filename: Database file, or ``:memory:``. ``database`` is accepted as an alias.
    """

    def __init__(self, connection: sqlite3.Connection, settings: dict[str, Any]) -> None:
        super().__init__(settings)
        self._connection = connection
        self._in_transaction = False

    @classmethod
    def connect(cls, settings: dict[str, Any]) -> "SQLiteDriver":
        filename = settings.get("filename") or settings.get("database")
        if not filename:
            raise ExecutorError("sqlite3 driver requires a 'filename' setting", step="connect")

        if filename != MEMORY_DATABASE:
            Path(filename).expanduser().parent.mkdir(parents=True, exist_ok=True)

        # Autocommit; transactions are opened explicitly per migration unit
        connection = sqlite3.connect(str(filename), isolation_level=None)
        connection.row_factory = sqlite3.Row
        logger.debug(f"Connected to sqlite database {filename}")
        return cls(connection, settings)

    def close(self) -> None:
        self._connection.close()
        logger.debug("Closed sqlite connection")

    @property
    def filename(self) -> str:
        return str(self.settings.get("filename") or self.settings.get("database"))

    def _database_path(self, name: str) -> Path:
        if self.filename == MEMORY_DATABASE:
            raise ExecutorError(
                "Cannot manage databases from an in-memory connection", step="database"
            )
        path = Path(name)
        if not path.suffix:
            path = path.with_suffix(".db")
        if not path.is_absolute():
            path = Path(self.filename).expanduser().parent / path
        return path

    def create_database(self, name: str, if_not_exists: bool = True) -> None:
        path = self._database_path(name)
        if path.exists():
            if if_not_exists:
                logger.info(f"Database {path} already exists")
                return
            raise ExecutorError(f"Database {path} already exists", step="database")

        sqlite3.connect(str(path)).close()

    def drop_database(self, name: str, if_exists: bool = True) -> None:
        path = self._database_path(name)
        if not path.exists():
            if if_exists:
                logger.info(f"Database {path} does not exist")
                return
            raise ExecutorError(f"Database {path} does not exist", step="database")

        path.unlink()

    def create_ledger_table(self, table: str) -> None:
        validate_identifier(table)
        self._connection.execute(
            f'CREATE TABLE IF NOT EXISTS "{table}" ('
            "id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "name VARCHAR(255) NOT NULL, "
            "run_on DATETIME NOT NULL)"
        )

    def _table_exists(self, table: str) -> bool:
        row = self._connection.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
        ).fetchone()
        return row is not None

    def applied_names(self, table: str) -> list[str]:
        """Ledger names oldest first; empty when the ledger table does not exist yet."""
        validate_identifier(table)
        if not self._table_exists(table):
            return []
        rows = self._connection.execute(f'SELECT name FROM "{table}" ORDER BY id ASC')
        return [row["name"] for row in rows.fetchall()]

    def record(self, table: str, name: str) -> None:
        validate_identifier(table)
        self._connection.execute(
            f'INSERT INTO "{table}" (name, run_on) VALUES (?, ?)',
            (name, datetime.now(timezone.utc).isoformat()),
        )

    def remove(self, table: str, name: str) -> None:
        validate_identifier(table)
        self._connection.execute(f'DELETE FROM "{table}" WHERE name = ?', (name,))

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> list[Any]:
        return self._connection.execute(sql, params).fetchall()

    def execute_script(self, script: str) -> None:
        for statement in split_statements(script):
            self._connection.execute(statement)

    @contextmanager
    def transaction(self) -> Iterator["SQLiteDriver"]:
        """Wrap the block in BEGIN/COMMIT, rolling back on any error.

        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self
            return

        self._connection.execute("BEGIN")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._connection.execute("ROLLBACK")
            logger.debug("Transaction rolled back")
            raise
        else:
            self._connection.execute("COMMIT")
        finally:
            self._in_transaction = False
