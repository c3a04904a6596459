"""Seed executor.

Version-controlled seeds are recorded in the seeds table and run once;
static seeds keep no ledger and run on every invocation.
"""

import logging
from pathlib import Path

from dbmigrate.drivers.base import Driver
from dbmigrate.migrations.base import BaseExecutor
from dbmigrate.migrations.loader import discover_units
from dbmigrate.migrations.models import Direction, RunSummary
from dbmigrate.migrations.runner import find_destination
from dbmigrate.models import Directive

logger = logging.getLogger(__name__)


class Seeder(BaseExecutor):
    """Runs seed units from one seeder directory.

    Attributes:
        seed_dir: Directory containing the seed units.
        static: Static seeds run every time and are never recorded.
    """

    def __init__(
        self,
        driver: Driver,
        seed_dir: Path,
        table: str = "seeds",
        static: bool = False,
        matching: str | None = None,
    ) -> None:
        super().__init__(driver, table, matching)
        self.seed_dir = seed_dir
        self.static = static

    def create_ledger_table(self) -> None:
        if not self.static:
            super().create_ledger_table()

    def seed(self, directive: Directive) -> RunSummary:
        """Run seeds up to ``directive.destination`` or ``effective_count`` of them."""
        units = discover_units(self.seed_dir)

        if directive.destination:
            target = find_destination(units, directive.destination)
            units = [u for u in units if u.name <= target.name]

        if not self.static:
            done = set(self.applied_names())
            units = [u for u in units if self.ledger_name(u) not in done]

        if not directive.destination:
            units = units[: directive.effective_count]

        summary = RunSummary(
            direction=Direction.SEED,
            dry_run=directive.dry_run,
            scope=self.matching,
            mode=directive.mode,
        )

        if not units:
            self._log("No seeds to run")
            return summary

        for unit in units:
            name = self.ledger_name(unit)
            if directive.dry_run:
                self._log(f"[DRY-RUN] Would seed {name}")
            else:
                self._log(f"Seeding {name}")
                bookkeeping = None
                if not self.static:
                    bookkeeping = lambda n=name: self.driver.record(self.table, n)  # noqa: E731
                self._run_unit(unit, "seed", directive.use_transactions, bookkeeping)
            summary.executed.append(name)

        return summary
