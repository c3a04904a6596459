"""Process-level error boundary.

An uncaught failure mid-migration leaves the ledger and backend in an unknown
state, so the boundary never recovers: it logs and terminates with status 1.
"""

import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from dbmigrate.exceptions import DBMigrateError, ExecutorError

logger = logging.getLogger(__name__)


def describe_error(error: DBMigrateError) -> str:
    if isinstance(error, ExecutorError):
        return f"{error.step} step failed: {error}"
    return str(error)


@contextmanager
def error_boundary(
    exit: Callable[[int], object] = sys.exit,
    on_usage: Callable[[], None] | None = None,
) -> Iterator[None]:
    """Treat any failure raised inside the block as fatal.

    Args:
        exit: Called with the exit status. Defaults to ``sys.exit``.
        on_usage: Called to print usage for grammar errors.
    """
    try:
        yield
    except DBMigrateError as e:
        logger.error(describe_error(e))
        if e.show_usage and on_usage is not None:
            on_usage()
        exit(e.exit_code)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        exit(1)
    except Exception as e:
        logger.exception(f"Unhandled failure: {e}")
        exit(1)
