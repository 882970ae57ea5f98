"""Join point for feeds that must all report before loading ends."""

import asyncio
import logging
from collections.abc import Iterable

_logger = logging.getLogger(__name__)


class FirstValueBarrier:
    """Resolves once when every named feed has arrived or the timeout fires.

    Must be created inside a running event loop. The timer is cancelled as
    soon as the barrier resolves.
    """

    def __init__(self, names: Iterable[str], timeout_seconds: float) -> None:
        loop = asyncio.get_running_loop()
        self._pending = set(names)
        self._future: asyncio.Future[bool] = loop.create_future()
        self._timer: asyncio.TimerHandle | None = loop.call_later(
            timeout_seconds, self._expire
        )
        if not self._pending:
            self._resolve(True)

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    def arrive(self, name: str) -> None:
        """Mark a feed as having delivered its first value."""
        self._pending.discard(name)
        if not self._pending:
            self._resolve(True)

    def cancel(self) -> None:
        """Give up waiting, e.g. when the session is torn down."""
        self._resolve(False)

    async def wait(self) -> bool:
        """Return True when all feeds arrived, False on timeout or cancel."""
        return await self._future

    def _expire(self) -> None:
        self._timer = None
        if not self._future.done():
            _logger.warning(
                "Timed out waiting for feeds: %s", ", ".join(sorted(self._pending))
            )
        self._resolve(False)

    def _resolve(self, complete: bool) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self._future.done():
            self._future.set_result(complete)
