"""Reference migration and seed executors.

Example usage:
    ```python
    from dbmigrate.migrations import Migrator

    migrator = Migrator(driver, Path("migrations"))
    migrator.create_ledger_table()
    summary = migrator.run_forward(directive)
    ```
"""

from dbmigrate.migrations.models import Direction, MigrationUnit, RunSummary, UnitKind
from dbmigrate.migrations.runner import Migrator
from dbmigrate.migrations.seeder import Seeder

__all__ = [
    "Direction",
    "MigrationUnit",
    "Migrator",
    "RunSummary",
    "Seeder",
    "UnitKind",
]
