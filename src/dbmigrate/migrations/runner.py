"""Migration executor.

The ``Migrator`` applies pending units forward or reverts applied ones,
strictly one unit at a time, keeping the ledger table in step with each unit.
"""

import logging
from pathlib import Path

from dbmigrate.drivers.base import Driver
from dbmigrate.exceptions import ExecutorError
from dbmigrate.migrations.base import BaseExecutor
from dbmigrate.migrations.loader import discover_units
from dbmigrate.migrations.models import Direction, MigrationUnit, RunSummary
from dbmigrate.models import Directive

logger = logging.getLogger(__name__)


def find_destination(units: list[MigrationUnit], destination: str) -> MigrationUnit:
    """Find the unit named by ``destination`` (full name or title).

    Raises:
        ExecutorError: If no unit matches.
    """
    for unit in units:
        if destination in (unit.name, unit.title):
            return unit
    raise ExecutorError(f"Destination migration {destination} not found", step="run")


class Migrator(BaseExecutor):
    """Runs migration units against a connected driver.

    Attributes:
        migrations_dir: Directory the units are discovered in.

    Example:
        ```python
        migrator = Migrator(driver, Path("migrations"))
        migrator.create_ledger_table()
        summary = migrator.run_forward(directive)
        print(f"Applied {len(summary.executed)} migrations")
        ```
    """

    def __init__(
        self,
        driver: Driver,
        migrations_dir: Path,
        table: str = "migrations",
        matching: str | None = None,
    ) -> None:
        super().__init__(driver, table, matching)
        self.migrations_dir = migrations_dir

    def get_pending_migrations(self) -> list[MigrationUnit]:
        """Units that have not been applied, in order."""
        applied = set(self.applied_names())
        return [u for u in discover_units(self.migrations_dir) if self.ledger_name(u) not in applied]

    def run_forward(self, directive: Directive) -> RunSummary:
        """Apply pending units.

        A destination selects every pending unit up to and including it;
        otherwise at most ``directive.effective_count`` units run.
        """
        pending = self.get_pending_migrations()

        if directive.destination:
            target = find_destination(discover_units(self.migrations_dir), directive.destination)
            pending = [u for u in pending if u.name <= target.name]
        else:
            pending = pending[: directive.effective_count]

        summary = RunSummary(
            direction=Direction.UP,
            dry_run=directive.dry_run,
            scope=self.matching,
            mode=directive.mode,
        )

        if not pending:
            self._log("No migrations to run")
            return summary

        prefix = "[DRY-RUN] " if directive.dry_run else ""
        self._log(f"{prefix}Found {len(pending)} pending migration(s)")

        for unit in pending:
            name = self.ledger_name(unit)
            if directive.dry_run:
                self._log(f"[DRY-RUN] Would apply {name}")
            else:
                self._log(f"Processing migration {name}")
                self._run_unit(
                    unit,
                    "up",
                    directive.use_transactions,
                    lambda n=name: self.driver.record(self.table, n),
                )
            summary.executed.append(name)

        return summary

    def run_backward(self, directive: Directive) -> RunSummary:
        """Revert the most recently applied units, newest first."""
        to_revert = list(reversed(self.applied_names()))[: directive.effective_count]

        summary = RunSummary(
            direction=Direction.DOWN,
            dry_run=directive.dry_run,
            scope=self.matching,
            mode=directive.mode,
        )

        if not to_revert:
            self._log("No migrations to revert")
            return summary

        # Resolve every file before touching the backend
        units = {self.ledger_name(u): u for u in discover_units(self.migrations_dir)}
        missing = [name for name in to_revert if name not in units]
        if missing:
            raise ExecutorError(
                f"Migration file(s) not found for applied migration(s): {', '.join(missing)}",
                step="run",
            )

        for name in to_revert:
            if directive.dry_run:
                self._log(f"[DRY-RUN] Would revert {name}")
            else:
                self._log(f"Reverting migration {name}")
                self._run_unit(
                    units[name],
                    "down",
                    directive.use_transactions,
                    lambda n=name: self.driver.remove(self.table, n),
                )
            summary.executed.append(name)

        return summary
