"""Durable local key/value slots backing guest sessions."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from macromate.documents import FoodEntryDocument, GoalDocument, TemplateDocument
from macromate.domain.entries import FoodEntry
from macromate.domain.goals import DailyGoal
from macromate.domain.templates import FoodTemplate

ENTRIES_KEY = "macromate-foods"
GOAL_KEY = "macromate-goal"
TEMPLATES_KEY = "macromate-templates"

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyValueStorage(Protocol):
    """Synchronous string storage keyed by name."""

    def get_item(self, key: str) -> str | None:
        """Return the stored string, if present."""

    def set_item(self, key: str, value: str) -> None:
        """Store a string, raising ``OSError`` when it cannot be persisted."""

    def remove_item(self, key: str) -> None:
        """Remove a key if present."""


@dataclass
class InMemoryKeyValueStorage(KeyValueStorage):
    """Process-local storage, used for tests and ephemeral guests."""

    items: dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


@dataclass
class LocalSlot(Generic[T]):
    """A typed value stored as JSON under one key.

    Reads never raise: a missing or undecodable value yields the fallback.
    Failed writes are logged and leave the previously stored value in place.
    """

    storage: KeyValueStorage
    key: str
    adapter: TypeAdapter[T]
    fallback: Callable[[], T]

    def read(self) -> T:
        """Return the stored value or the fallback."""
        try:
            raw = self.storage.get_item(self.key)
        except (OSError, UnicodeDecodeError):
            _logger.exception("Failed to read local key %s", self.key)
            return self.fallback()
        if raw is None:
            return self.fallback()
        try:
            return self.adapter.validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring undecodable value for local key %s", self.key)
            return self.fallback()

    def write(self, value: T) -> bool:
        """Persist a value, returning False when storage rejected it."""
        payload = self.adapter.dump_json(value, by_alias=True, exclude_none=True)
        try:
            self.storage.set_item(self.key, payload.decode("utf-8"))
        except OSError:
            _logger.exception("Failed to write local key %s", self.key)
            return False
        return True

    def clear(self) -> None:
        """Remove the stored value."""
        try:
            self.storage.remove_item(self.key)
        except OSError:
            _logger.exception("Failed to remove local key %s", self.key)


@dataclass
class GuestStorage:
    """The three local slots holding a guest's entries, goal and templates."""

    entries: LocalSlot[list[FoodEntryDocument]]
    goal: LocalSlot[GoalDocument | None]
    templates: LocalSlot[list[TemplateDocument]]

    @classmethod
    def create(cls, storage: KeyValueStorage) -> "GuestStorage":
        return cls(
            entries=LocalSlot(
                storage, ENTRIES_KEY, TypeAdapter(list[FoodEntryDocument]), list
            ),
            goal=LocalSlot(
                storage, GOAL_KEY, TypeAdapter(GoalDocument | None), lambda: None
            ),
            templates=LocalSlot(
                storage, TEMPLATES_KEY, TypeAdapter(list[TemplateDocument]), list
            ),
        )

    def load_entries(self) -> list[FoodEntry]:
        return [document.to_entry() for document in self.entries.read()]

    def save_entries(self, entries: list[FoodEntry]) -> bool:
        return self.entries.write(
            [FoodEntryDocument.from_entry(entry) for entry in entries]
        )

    def load_goal(self) -> DailyGoal | None:
        document = self.goal.read()
        return document.to_goal() if document else None

    def save_goal(self, goal: DailyGoal) -> bool:
        return self.goal.write(GoalDocument.from_goal(goal))

    def load_templates(self) -> list[FoodTemplate]:
        return [document.to_template() for document in self.templates.read()]

    def save_templates(self, templates: list[FoodTemplate]) -> bool:
        return self.templates.write(
            [TemplateDocument.from_template(template) for template in templates]
        )

    def is_empty(self) -> bool:
        return (
            not self.entries.read()
            and self.goal.read() is None
            and not self.templates.read()
        )

    def clear(self) -> None:
        """Remove all guest data."""
        self.entries.clear()
        self.goal.clear()
        self.templates.clear()
