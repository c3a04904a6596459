"""Execution coordinator.

Turns a ``Directive`` into executor calls: resolve the directory, connect,
make sure the ledger table exists, run, and hand the connection to the
completion protocol. Steps run strictly in sequence and nothing is retried.
"""

import logging
import os
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from dbmigrate import drivers
from dbmigrate.completion import CompletionCallback, completing
from dbmigrate.config import resolve_configuration
from dbmigrate.drivers.base import Driver
from dbmigrate.exceptions import DBMigrateError, ExecutorError
from dbmigrate.migrations import Migrator, RunSummary, Seeder
from dbmigrate.migrations.base import BaseExecutor
from dbmigrate.models import (
    Action,
    Directive,
    ExecutionContext,
    ResolvedConfiguration,
    RunOptions,
)
from dbmigrate.paths import (
    ensure_directory,
    resolve_migrations_dir,
    resolve_seeds_dir,
    split_migration_name,
)
from dbmigrate.templates import create_migration

logger = logging.getLogger(__name__)

ConnectFn = Callable[[ResolvedConfiguration], Driver]


@contextmanager
def failing_step(step: str) -> Iterator[None]:
    """Report collaborator failures inside the block as ``ExecutorError(step)``."""
    try:
        yield
    except DBMigrateError:
        raise
    except Exception as e:
        raise ExecutorError(f"{e}", step=step) from e


class ExecutionCoordinator:
    """Runs directives for one invocation.

    Attributes:
        options: Invocation flags.
        on_complete: Custom completion callback, see ``CompletionProtocol``.
        progress: Optional callback receiving executor progress messages.
    """

    def __init__(
        self,
        options: RunOptions,
        *,
        config: ResolvedConfiguration | None = None,
        environ: Mapping[str, str] | None = None,
        connect: ConnectFn = drivers.connect,
        on_complete: CompletionCallback | None = None,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        self.options = options
        self.environ = environ if environ is not None else os.environ
        self.on_complete = on_complete
        self.progress = progress
        self._config = config
        self._connect = connect

    @property
    def config(self) -> ResolvedConfiguration:
        """Configuration for this invocation, resolved on first use."""
        if self._config is None:
            self._config = resolve_configuration(self.options, self.environ)
        return self._config

    def connect(self, config: ResolvedConfiguration) -> Driver:
        with failing_step("connect"):
            return self._connect(config)

    def _prepare(self, executor: BaseExecutor, dry_run: bool = False) -> None:
        executor.set_progress_callback(self.progress)
        if dry_run:
            logger.debug(f"Dry run; ledger table {executor.table} left untouched")
            return
        with failing_step("ledger"):
            executor.create_ledger_table()
        logger.debug(f"Ledger table {executor.table} ready")

    def apply(
        self, directive: Directive, config: ResolvedConfiguration | None = None
    ) -> RunSummary | None:
        """Apply pending migrations up to a count or destination."""
        return self._migrate(directive, config, forward=True)

    def revert(
        self, directive: Directive, config: ResolvedConfiguration | None = None
    ) -> RunSummary | None:
        """Revert migrations; one unless counted, all for reset."""
        if directive.destination:
            logger.warning("Destination is not honored for revert; use count")
        if directive.action is Action.REVERT and directive.count is None:
            logger.info("Defaulting to running 1 down migration.")
        return self._migrate(directive, config, forward=False)

    def _migrate(
        self,
        directive: Directive,
        config: ResolvedConfiguration | None,
        forward: bool,
    ) -> RunSummary | None:
        context = ExecutionContext(
            directive=directive,
            config=config or self.config,
            target_dir=resolve_migrations_dir(self.options, directive.scope),
        )
        if directive.dry_run:
            logger.info("dry run")

        driver = self.connect(context.config)
        context.handle = Migrator(
            driver,
            context.target_dir,
            table=self.options.migration_table,
            matching=directive.scope,
        )

        summary = None
        with completing(context.handle, self.on_complete):
            self._prepare(context.handle, directive.dry_run)
            with failing_step("run"):
                if forward:
                    summary = context.handle.run_forward(directive)
                else:
                    summary = context.handle.run_backward(directive)
        return summary

    def create(self, directive: Directive) -> list[Path]:
        """Scaffold a migration; no backend connection is made.

        ``group/name`` creates ``<migrations-dir>/group/<timestamp>-name.py``.
        """
        title, folders = split_migration_name(directive.name or "")
        base = ensure_directory(resolve_migrations_dir(self.options, directive.scope))
        target = base.joinpath(*folders)
        return create_migration(title, target, self.options.template_type)

    def seed(
        self, directive: Directive, config: ResolvedConfiguration | None = None
    ) -> RunSummary | None:
        """Run version-controlled or static seeds."""
        context = ExecutionContext(
            directive=directive,
            config=config or self.config,
            target_dir=resolve_seeds_dir(self.options, directive.is_static_seed, directive.scope),
        )
        if directive.dry_run:
            logger.info("dry run")

        driver = self.connect(context.config)
        context.handle = Seeder(
            driver,
            context.target_dir,
            table=self.options.seeds_table,
            static=directive.is_static_seed,
            matching=directive.scope,
        )

        summary = None
        with completing(context.handle, self.on_complete):
            self._prepare(context.handle, directive.dry_run)
            with failing_step("seed"):
                summary = context.handle.seed(directive)
        return summary

    def database_admin(
        self, directive: Directive, config: ResolvedConfiguration | None = None
    ) -> None:
        """Create or drop a database; both are idempotent."""
        context = ExecutionContext(directive=directive, config=config or self.config)
        name = directive.name or ""
        creating = directive.action is Action.DATABASE_CREATE

        context.handle = self.connect(context.config)
        with completing(context.handle, self.on_complete):
            if directive.dry_run:
                verb = "create" if creating else "drop"
                logger.info(f'[DRY-RUN] Would {verb} database "{name}"')
                return
            with failing_step("database"):
                if creating:
                    context.handle.create_database(name, if_not_exists=True)
                    logger.info(f'Created database "{name}"')
                else:
                    context.handle.drop_database(name, if_exists=True)
                    logger.info(f'Deleted database "{name}"')
