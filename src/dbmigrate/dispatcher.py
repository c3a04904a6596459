"""Action dispatcher.

Parses the compound action token ``action[:mode[:scope]]`` plus positional
arguments into a validated ``Directive``, then routes it to the coordinator.

Examples:
    ``up`` / ``up 20240101120000-add-users`` / ``up::billing``
    ``down`` / ``reset`` / ``create group/add-users``
    ``seed`` / ``seed:static`` / ``seed static`` / ``db:create app_test``
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from dbmigrate.exceptions import InvalidActionError
from dbmigrate.models import COUNT_ALL, SEED_MODE_STATIC, SEED_MODE_VC, Action, Directive

if TYPE_CHECKING:
    from dbmigrate.coordinator import ExecutionCoordinator

logger = logging.getLogger(__name__)

USAGE = (
    "Usage: db-migrate [up|down|reset|create|seed|db] "
    "[[dbname/]migrationName|all] [options]"
)

_ACTIONS = {
    "up": Action.APPLY,
    "down": Action.REVERT,
    "reset": Action.RESET,
    "create": Action.CREATE,
    "seed": Action.SEED,
}

_DB_ACTIONS = {
    "create": Action.DATABASE_CREATE,
    "drop": Action.DATABASE_DROP,
}

SEED_MODES = (SEED_MODE_VC, SEED_MODE_STATIC)


@dataclass(frozen=True)
class ParsedAction:
    """Result of splitting the compound token."""

    action: Action
    mode: str | None = None
    scope: str | None = None


def parse_action(token: str) -> ParsedAction:
    """Split ``action[:mode[:scope]]``.

    Raises:
        InvalidActionError: For unknown actions or malformed tokens.
    """
    segments = [segment.strip() or None for segment in token.split(":")]
    if len(segments) > 3:
        raise InvalidActionError(f"Invalid action '{token}': expected action[:mode[:scope]]")

    head = segments[0]
    mode = segments[1] if len(segments) > 1 else None
    scope = segments[2] if len(segments) > 2 else None

    if head == "db":
        if mode not in _DB_ACTIONS:
            raise InvalidActionError("Please enter a valid command, i.e. db:create|db:drop")
        return ParsedAction(_DB_ACTIONS[mode], mode, scope)

    if head not in _ACTIONS:
        raise InvalidActionError("Invalid Action: Must be [up|down|create|reset|seed|db].")

    return ParsedAction(_ACTIONS[head], mode, scope)


def build_directive(**fields: Any) -> Directive:
    """Construct a ``Directive``, reporting validation failures as grammar errors."""
    try:
        return Directive(**fields)
    except ValidationError as e:
        raise InvalidActionError(f"Invalid arguments: {e}") from e


def parse_directive(
    token: str,
    args: Sequence[Any] = (),
    *,
    count: int | None = None,
    dry_run: bool = False,
    use_transactions: bool = True,
) -> Directive:
    """Turn one command line into a ``Directive``.

    The result depends only on the arguments; nothing is read from or written
    to shared state.

    Args:
        token: Compound action token.
        args: Remaining positional arguments.
        count: ``--count`` value, if given.
        dry_run: ``--dry-run`` flag.
        use_transactions: False when ``--no-transactions`` is given.

    Raises:
        InvalidActionError: If the command cannot be understood.
    """
    parsed = parse_action(token)
    action, mode, scope = parsed.action, parsed.mode, parsed.scope
    remaining = [str(arg) for arg in args]
    destination: str | None = None
    name: str | None = None

    if action is Action.APPLY:
        if remaining:
            destination = remaining.pop(0)
        if destination and count is not None:
            logger.warning(
                f"Both destination {destination} and count {count} given; "
                "running up to the destination and ignoring count"
            )
            count = None

    elif action in (Action.REVERT, Action.RESET):
        if remaining:
            logger.info(
                "Ignoring migration name: destination is not honored for revert; "
                "use --count to control how many down migrations are run."
            )
            remaining.clear()
        if action is Action.RESET:
            if count is not None and count != COUNT_ALL:
                logger.info("reset reverts every migration; ignoring count")
            count = COUNT_ALL

    elif action is Action.CREATE:
        if not remaining:
            raise InvalidActionError("'migrationName' is required.")
        name = remaining.pop(0)

    elif action is Action.SEED:
        if mode is None and remaining and remaining[0] in SEED_MODES:
            mode = remaining.pop(0)
        mode = mode or SEED_MODE_VC
        if mode not in SEED_MODES:
            raise InvalidActionError(f"Invalid seed mode '{mode}': must be vc or static")
        if remaining:
            destination = remaining.pop(0)

    else:
        if not remaining:
            raise InvalidActionError("You must enter a database name!")
        name = remaining.pop(0)

    if remaining:
        logger.debug(f"Ignoring extra arguments: {remaining}")

    return build_directive(
        action=action,
        scope=scope,
        mode=mode,
        destination=destination,
        count=count,
        name=name,
        dry_run=dry_run,
        use_transactions=use_transactions,
    )


def dispatch(directive: Directive, coordinator: "ExecutionCoordinator") -> Any:
    """Route ``directive`` to the coordinator operation for its action."""
    handlers = {
        Action.APPLY: coordinator.apply,
        Action.REVERT: coordinator.revert,
        Action.RESET: coordinator.revert,
        Action.CREATE: coordinator.create,
        Action.SEED: coordinator.seed,
        Action.DATABASE_CREATE: coordinator.database_admin,
        Action.DATABASE_DROP: coordinator.database_admin,
    }
    return handlers[directive.action](directive)
