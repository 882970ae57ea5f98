"""Session tracking and the guest to account hand-over."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from macromate.domain.sessions import SIGNED_OUT, SessionContext, SessionMode
from macromate.services.feeds import ListenerRegistry, Unsubscribe
from macromate.services.migration import MigrationResult, MigrationService
from macromate.services.tracker import FoodTracker

_logger = logging.getLogger(__name__)

_SESSION_KEY = "session"


class SessionProvider(Protocol):
    """Source of the current session, owned by the authentication layer."""

    def current(self) -> SessionContext:
        """Return the active session."""

    def on_change(self, callback: Callable[[SessionContext], None]) -> Unsubscribe:
        """Call back with every new session."""


@dataclass
class InMemorySessionProvider(SessionProvider):
    """Session provider driven by explicit ``set`` calls."""

    _session: SessionContext = SIGNED_OUT
    _listeners: ListenerRegistry[SessionContext] = field(
        default_factory=ListenerRegistry, init=False, repr=False
    )

    def current(self) -> SessionContext:
        return self._session

    def on_change(self, callback: Callable[[SessionContext], None]) -> Unsubscribe:
        return self._listeners.add(_SESSION_KEY, callback)

    def set(self, session: SessionContext) -> None:
        """Replace the session and notify listeners when it changed."""
        if session == self._session:
            return
        self._session = session
        self._listeners.publish(_SESSION_KEY, session)

    def continue_as_guest(self) -> None:
        self.set(SessionContext(is_guest=True))

    def sign_in(self, user_id: UUID) -> None:
        self.set(SessionContext(user_id=user_id))

    def sign_out(self) -> None:
        self.set(SIGNED_OUT)


@dataclass
class SessionFlow:
    """Keeps the tracker attached to the provider's current session.

    Every change from a guest session to an account first moves the guest
    data into that account.
    """

    provider: SessionProvider
    tracker: FoodTracker
    migration: MigrationService | None = None
    last_migration: MigrationResult | None = field(default=None, init=False)
    _active: SessionContext = field(default=SIGNED_OUT, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _pending: set[asyncio.Task[None]] = field(default_factory=set, init=False)
    _unsubscribe: Unsubscribe | None = field(default=None, init=False)

    async def start(self) -> None:
        """Follow the provider and attach the tracker to its current session."""
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_change(self._on_change)
        await self.apply(self.provider.current())

    async def apply(self, session: SessionContext) -> None:
        """Switch the tracker to a session, migrating guest data when due."""
        async with self._lock:
            previous = self._active
            self._active = session
            if self._should_migrate(previous, session):
                await self._migrate(session.user_id)
            await self.tracker.switch_session(session)

    async def drain(self) -> None:
        """Wait for session changes that are still being applied."""
        while self._pending:
            tasks = list(self._pending)
            self._pending.difference_update(tasks)
            await asyncio.gather(*tasks)

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.drain()
        await self.tracker.close()

    def _on_change(self, session: SessionContext) -> None:
        task = asyncio.get_running_loop().create_task(self.apply(session))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _should_migrate(
        self, previous: SessionContext, session: SessionContext
    ) -> bool:
        return (
            self.migration is not None
            and previous.mode is SessionMode.GUEST
            and session.mode is SessionMode.AUTHENTICATED
        )

    async def _migrate(self, user_id: UUID | None) -> None:
        if self.migration is None or user_id is None:
            return
        result = await self.migration.migrate(user_id)
        self.last_migration = result
        _logger.info("Guest migration for user %s: %s", user_id, result.outcome)
