"""Listener bookkeeping shared by data feeds and session providers."""

from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]


@dataclass
class ListenerRegistry(Generic[T]):
    """Callbacks grouped by key, each removable exactly once."""

    _listeners: dict[Hashable, list[Callable[[T], None]]] = field(
        default_factory=dict
    )

    def add(self, key: Hashable, listener: Callable[[T], None]) -> Unsubscribe:
        """Register a listener and return the handle that removes it."""
        self._listeners.setdefault(key, []).append(listener)
        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(key, None)

        return unsubscribe

    def has_listeners(self, key: Hashable) -> bool:
        return bool(self._listeners.get(key))

    def publish(self, key: Hashable, value: T) -> None:
        """Deliver a value to every listener registered under the key."""
        for listener in list(self._listeners.get(key, [])):
            listener(value)
