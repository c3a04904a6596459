"""Shared plumbing for the migration and seed executors."""

import logging
from collections.abc import Callable

from dbmigrate.drivers.base import Driver
from dbmigrate.exceptions import DBMigrateError, ExecutorError
from dbmigrate.migrations.loader import load_hook
from dbmigrate.migrations.models import MigrationUnit

logger = logging.getLogger(__name__)


class BaseExecutor:
    """Executor bound to one driver connection and one ledger table.

    Attributes:
        driver: Connected driver.
        table: Ledger table name.
        matching: Scope filter; ledger names are prefixed ``<matching>/``.
    """

    def __init__(self, driver: Driver, table: str, matching: str | None = None) -> None:
        self.driver = driver
        self.table = table
        self.matching = matching
        self._on_progress: Callable[[str], None] | None = None

    def set_progress_callback(self, callback: Callable[[str], None] | None) -> None:
        """Set a callback for progress updates.

        Args:
            callback: Function to call with progress messages.
        """
        self._on_progress = callback

    def _log(self, message: str) -> None:
        """Log a message and call progress callback if set."""
        logger.info(message)
        if self._on_progress:
            self._on_progress(message)

    def ledger_name(self, unit: MigrationUnit) -> str:
        return f"{self.matching}/{unit.name}" if self.matching else unit.name

    def applied_names(self) -> list[str]:
        """Ledger entries within this executor's scope, oldest first."""
        names = self.driver.applied_names(self.table)
        if self.matching:
            prefix = f"{self.matching}/"
            return [name for name in names if name.startswith(prefix)]
        return [name for name in names if "/" not in name]

    def create_ledger_table(self) -> None:
        self.driver.create_ledger_table(self.table)

    def close(self) -> None:
        self.driver.close()

    def _run_unit(
        self,
        unit: MigrationUnit,
        hook: str,
        use_transactions: bool,
        bookkeeping: Callable[[], None] | None = None,
    ) -> None:
        """Run one unit's hook plus its ledger update, atomically when requested."""
        func = load_hook(unit, hook)

        def run() -> None:
            func(self.driver)
            if bookkeeping:
                bookkeeping()

        try:
            if use_transactions:
                with self.driver.transaction():
                    run()
            else:
                run()
        except DBMigrateError:
            raise
        except Exception as e:
            raise ExecutorError(f"Migration {unit.name} ({hook}) failed: {e}", step="run") from e
