"""Programmatic interface to dbmigrate.

Example:
    ```python
    from dbmigrate import DBMigrate, RunOptions

    dbm = DBMigrate(RunOptions(env="test"))
    dbm.up(2)                   # apply two migrations
    dbm.up("20240101120000-add-users")
    dbm.down()                  # revert the latest one
    dbm.seed("static")
    ```

Every call builds its own ``Directive`` and coordinator; the options are
immutable, so ``with_options`` returns a new instance instead of changing
this one.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from dbmigrate.completion import CompletionCallback
from dbmigrate.coordinator import ExecutionCoordinator
from dbmigrate.dispatcher import build_directive, dispatch, parse_directive
from dbmigrate.models import COUNT_ALL, SEED_MODE_VC, Action, Directive, RunOptions

logger = logging.getLogger(__name__)


class DBMigrate:
    """Facade over the dispatcher and coordinator.

    Attributes:
        options: Invocation flags shared by every call.
        environ: Environment used for configuration resolution.
        progress: Callback receiving executor progress messages.
    """

    def __init__(
        self,
        options: RunOptions | None = None,
        *,
        on_complete: CompletionCallback | None = None,
        environ: Mapping[str, str] | None = None,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        self.options = options or RunOptions()
        self.environ = environ
        self.progress = progress
        self._on_complete = on_complete

    def with_options(self, **changes: Any) -> "DBMigrate":
        """Return a copy using ``options`` updated with ``changes``."""
        options = RunOptions.model_validate({**self.options.model_dump(), **changes})
        return DBMigrate(
            options,
            on_complete=self._on_complete,
            environ=self.environ,
            progress=self.progress,
        )

    def set_custom_callback(self, callback: CompletionCallback) -> None:
        """Receive the outcome of each run instead of having errors raised."""
        self._on_complete = callback

    def set_default_callback(self) -> None:
        self._on_complete = None

    def coordinator(self) -> ExecutionCoordinator:
        return ExecutionCoordinator(
            self.options,
            environ=self.environ,
            on_complete=self._on_complete,
            progress=self.progress,
        )

    def execute(self, directive: Directive) -> Any:
        return dispatch(directive, self.coordinator())

    def run(
        self,
        action: str,
        args: Sequence[Any] = (),
        *,
        count: int | None = None,
        dry_run: bool = False,
        use_transactions: bool = True,
    ) -> Any:
        """Parse and execute a command line, as the CLI does."""
        directive = parse_directive(
            action,
            args,
            count=count,
            dry_run=dry_run,
            use_transactions=use_transactions,
        )
        return self.execute(directive)

    def up(
        self,
        specification: str | int | None = None,
        scope: str | None = None,
        *,
        dry_run: bool = False,
        use_transactions: bool = True,
    ) -> Any:
        """Apply migrations.

        Args:
            specification: Destination name (str) or count (int). All pending
                migrations when omitted.
            scope: Run only the migrations of this scope.
        """
        destination = specification if isinstance(specification, str) else None
        count = specification if isinstance(specification, int) else None
        return self.execute(
            build_directive(
                action=Action.APPLY,
                destination=destination,
                count=count,
                scope=scope,
                dry_run=dry_run,
                use_transactions=use_transactions,
            )
        )

    def down(
        self,
        count: int | None = None,
        scope: str | None = None,
        *,
        dry_run: bool = False,
        use_transactions: bool = True,
    ) -> Any:
        """Revert ``count`` migrations (one by default)."""
        return self.execute(
            build_directive(
                action=Action.REVERT,
                count=count,
                scope=scope,
                dry_run=dry_run,
                use_transactions=use_transactions,
            )
        )

    def reset(self, scope: str | None = None, *, dry_run: bool = False) -> Any:
        """Revert every applied migration."""
        return self.execute(
            build_directive(action=Action.RESET, count=COUNT_ALL, scope=scope, dry_run=dry_run)
        )

    def create(self, name: str, scope: str | None = None) -> Any:
        """Scaffold a migration named ``name`` (``group/name`` nests it)."""
        return self.execute(build_directive(action=Action.CREATE, name=name, scope=scope))

    def create_database(self, name: str) -> Any:
        return self.execute(
            build_directive(action=Action.DATABASE_CREATE, mode="create", name=name)
        )

    def drop_database(self, name: str) -> Any:
        return self.execute(build_directive(action=Action.DATABASE_DROP, mode="drop", name=name))

    def seed(
        self,
        mode: str = SEED_MODE_VC,
        scope: str | None = None,
        destination: str | None = None,
        *,
        dry_run: bool = False,
    ) -> Any:
        """Run the version-controlled (``vc``) or ``static`` seeders."""
        token = f"seed:{mode}:{scope or ''}"
        args = [destination] if destination else []
        return self.run(token, args, dry_run=dry_run)
