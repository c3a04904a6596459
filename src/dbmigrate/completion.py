"""Completion protocol.

Every connected executor or driver is released through a
``CompletionProtocol``: the connection is closed exactly once, then the run's
own error (if any) is surfaced, then a close failure (only if the run itself
succeeded). At most one failure is ever reported. A custom callback may take
the place of raising, except for interrupts and exits, which always propagate.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from dbmigrate.exceptions import CloseError

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[Exception | None], None]


class Closeable(Protocol):
    def close(self) -> None: ...


class CompletionProtocol:
    """Continuation bound to one live handle.

    Attributes:
        handle: Executor or driver to close.
        on_complete: Optional callback that receives the surfaced error (or None)
            instead of it being raised. Interrupts and exits bypass it.
    """

    def __init__(self, handle: Closeable, on_complete: CompletionCallback | None = None) -> None:
        self.handle = handle
        self.on_complete = on_complete
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _close(self) -> BaseException | None:
        if self._closed:
            logger.debug("Connection already closed")
            return None

        self._closed = True
        try:
            self.handle.close()
        except Exception as e:
            close_error = CloseError(f"Failed to close connection: {e}")
            close_error.__cause__ = e
            return close_error
        return None

    def finish(self, error: BaseException | None = None) -> None:
        """Close the handle and surface the outcome.

        Args:
            error: Failure of the operation that used the handle, if any.

        Raises:
            BaseException: ``error`` itself, or ``CloseError`` when only the
                close failed. With ``on_complete`` set, only interrupts and
                exits (non-``Exception`` errors) are raised.
        """
        close_error = self._close()

        surfaced = error
        if close_error is not None:
            if error is None:
                surfaced = close_error
            else:
                logger.error(str(close_error))

        # Interrupts and exits always terminate, callback or not
        if surfaced is not None and not isinstance(surfaced, Exception):
            raise surfaced

        if self.on_complete is not None:
            self.on_complete(surfaced)
            return

        if surfaced is not None:
            raise surfaced

        logger.info("Done")


@contextmanager
def completing(
    handle: Any, on_complete: CompletionCallback | None = None
) -> Iterator[CompletionProtocol]:
    """Run the block, then hand its outcome to a ``CompletionProtocol``.

    Example:
        ```python
        with completing(migrator):
            migrator.create_ledger_table()
            summary = migrator.run_forward(directive)
        ```
    """
    protocol = CompletionProtocol(handle, on_complete)
    try:
        yield protocol
    except BaseException as e:
        protocol.finish(e)
    else:
        protocol.finish()
