"""Storage strategies behind the tracker, one per session mode."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID, uuid4

from macromate.domain.entries import (
    FoodEntry,
    FoodEntryDraft,
    apply_entry_changes,
    build_entry,
    validate_entry_changes,
)
from macromate.domain.errors import NotAuthenticatedError
from macromate.domain.goals import DailyGoal
from macromate.domain.sessions import SessionContext, SessionMode
from macromate.domain.templates import (
    FoodTemplate,
    FoodTemplateDraft,
    apply_template_changes,
    validate_template_changes,
)
from macromate.services.feeds import ListenerRegistry, Unsubscribe
from macromate.services.local_store import GuestStorage
from macromate.services.remote import RemoteGateway


class TrackerBackend(Protocol):
    """Capabilities the tracker needs from a storage strategy."""

    def subscribe_entries(
        self, on_change: Callable[[list[FoodEntry]], None]
    ) -> Unsubscribe:
        """Follow the entry collection."""

    def subscribe_goal(
        self, on_change: Callable[[DailyGoal | None], None]
    ) -> Unsubscribe:
        """Follow the goal."""

    def subscribe_templates(
        self, on_change: Callable[[list[FoodTemplate]], None]
    ) -> Unsubscribe:
        """Follow the template collection."""

    async def add_entry(self, draft: FoodEntryDraft, timestamp: int) -> FoodEntry:
        """Store a new entry."""

    async def edit_entry(self, entry_id: str, changes: dict[str, object]) -> None:
        """Merge changes into an entry."""

    async def delete_entry(self, entry_id: str) -> None:
        """Remove an entry."""

    async def save_goal(self, goal: DailyGoal) -> None:
        """Replace the goal."""

    async def add_template(self, draft: FoodTemplateDraft) -> FoodTemplate:
        """Store a new template."""

    async def edit_template(
        self, template_id: str, changes: dict[str, object]
    ) -> None:
        """Merge changes into a template."""

    async def delete_template(self, template_id: str) -> None:
        """Remove a template."""

    async def delete_templates(self, template_ids: list[str]) -> None:
        """Remove several templates at once."""


def _new_local_id() -> str:
    return str(uuid4())


@dataclass
class GuestBackend(TrackerBackend):
    """Keeps guest data in memory and mirrors every change to local storage.

    No method awaits anything, so a change and its echo to subscribers happen
    in one step from the event loop's point of view.
    """

    storage: GuestStorage
    id_factory: Callable[[], str] = _new_local_id
    _entries: list[FoodEntry] = field(init=False)
    _goal: DailyGoal | None = field(init=False)
    _templates: list[FoodTemplate] = field(init=False)
    _feeds: ListenerRegistry[object] = field(
        default_factory=ListenerRegistry, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self._entries = self.storage.load_entries()
        self._goal = self.storage.load_goal()
        self._templates = self.storage.load_templates()

    def subscribe_entries(
        self, on_change: Callable[[list[FoodEntry]], None]
    ) -> Unsubscribe:
        unsubscribe = self._feeds.add("entries", on_change)
        on_change(list(self._entries))
        return unsubscribe

    def subscribe_goal(
        self, on_change: Callable[[DailyGoal | None], None]
    ) -> Unsubscribe:
        unsubscribe = self._feeds.add("goal", on_change)
        on_change(self._goal)
        return unsubscribe

    def subscribe_templates(
        self, on_change: Callable[[list[FoodTemplate]], None]
    ) -> Unsubscribe:
        unsubscribe = self._feeds.add("templates", on_change)
        on_change(list(self._templates))
        return unsubscribe

    async def add_entry(self, draft: FoodEntryDraft, timestamp: int) -> FoodEntry:
        entry = build_entry(draft, self.id_factory(), timestamp)
        self._set_entries([*self._entries, entry])
        return entry

    async def edit_entry(self, entry_id: str, changes: dict[str, object]) -> None:
        validate_entry_changes(changes)
        self._set_entries(
            [
                apply_entry_changes(entry, changes) if entry.id == entry_id else entry
                for entry in self._entries
            ]
        )

    async def delete_entry(self, entry_id: str) -> None:
        self._set_entries([entry for entry in self._entries if entry.id != entry_id])

    async def save_goal(self, goal: DailyGoal) -> None:
        self.storage.save_goal(goal)
        self._goal = goal
        self._feeds.publish("goal", goal)

    async def add_template(self, draft: FoodTemplateDraft) -> FoodTemplate:
        template = FoodTemplate(
            id=self.id_factory(), name=draft.name, basis=draft.basis
        )
        self._set_templates([*self._templates, template])
        return template

    async def edit_template(
        self, template_id: str, changes: dict[str, object]
    ) -> None:
        validate_template_changes(changes)
        self._set_templates(
            [
                apply_template_changes(template, changes)
                if template.id == template_id
                else template
                for template in self._templates
            ]
        )

    async def delete_template(self, template_id: str) -> None:
        await self.delete_templates([template_id])

    async def delete_templates(self, template_ids: list[str]) -> None:
        doomed = set(template_ids)
        self._set_templates(
            [template for template in self._templates if template.id not in doomed]
        )

    # Saving validates the documents, so a bad value raises before any
    # state changes.
    def _set_entries(self, entries: list[FoodEntry]) -> None:
        self.storage.save_entries(entries)
        self._entries = entries
        self._feeds.publish("entries", list(entries))

    def _set_templates(self, templates: list[FoodTemplate]) -> None:
        self.storage.save_templates(templates)
        self._templates = templates
        self._feeds.publish("templates", list(templates))


@dataclass
class RemoteBackend(TrackerBackend):
    """Routes a signed-in user's changes to the remote gateway.

    Nothing is applied locally; the gateway feeds echo committed changes.
    """

    gateway: RemoteGateway
    user_id: UUID

    def subscribe_entries(
        self, on_change: Callable[[list[FoodEntry]], None]
    ) -> Unsubscribe:
        return self.gateway.subscribe_entries(self.user_id, on_change)

    def subscribe_goal(
        self, on_change: Callable[[DailyGoal | None], None]
    ) -> Unsubscribe:
        return self.gateway.subscribe_goal(self.user_id, on_change)

    def subscribe_templates(
        self, on_change: Callable[[list[FoodTemplate]], None]
    ) -> Unsubscribe:
        return self.gateway.subscribe_templates(self.user_id, on_change)

    async def add_entry(self, draft: FoodEntryDraft, timestamp: int) -> FoodEntry:
        return self.gateway.create_entry(self.user_id, draft, timestamp)

    async def edit_entry(self, entry_id: str, changes: dict[str, object]) -> None:
        self.gateway.update_entry(self.user_id, entry_id, changes)

    async def delete_entry(self, entry_id: str) -> None:
        self.gateway.delete_entry(self.user_id, entry_id)

    async def save_goal(self, goal: DailyGoal) -> None:
        self.gateway.save_goal(self.user_id, goal)

    async def add_template(self, draft: FoodTemplateDraft) -> FoodTemplate:
        return self.gateway.create_template(self.user_id, draft)

    async def edit_template(
        self, template_id: str, changes: dict[str, object]
    ) -> None:
        self.gateway.update_template(self.user_id, template_id, changes)

    async def delete_template(self, template_id: str) -> None:
        self.gateway.delete_template(self.user_id, template_id)

    async def delete_templates(self, template_ids: list[str]) -> None:
        self.gateway.delete_templates(self.user_id, template_ids)


@dataclass
class SignedOutBackend(TrackerBackend):
    """Serves empty data and refuses every change."""

    def subscribe_entries(
        self, on_change: Callable[[list[FoodEntry]], None]
    ) -> Unsubscribe:
        on_change([])
        return _noop

    def subscribe_goal(
        self, on_change: Callable[[DailyGoal | None], None]
    ) -> Unsubscribe:
        on_change(None)
        return _noop

    def subscribe_templates(
        self, on_change: Callable[[list[FoodTemplate]], None]
    ) -> Unsubscribe:
        on_change([])
        return _noop

    async def add_entry(self, draft: FoodEntryDraft, timestamp: int) -> FoodEntry:
        raise NotAuthenticatedError()

    async def edit_entry(self, entry_id: str, changes: dict[str, object]) -> None:
        raise NotAuthenticatedError()

    async def delete_entry(self, entry_id: str) -> None:
        raise NotAuthenticatedError()

    async def save_goal(self, goal: DailyGoal) -> None:
        raise NotAuthenticatedError()

    async def add_template(self, draft: FoodTemplateDraft) -> FoodTemplate:
        raise NotAuthenticatedError()

    async def edit_template(
        self, template_id: str, changes: dict[str, object]
    ) -> None:
        raise NotAuthenticatedError()

    async def delete_template(self, template_id: str) -> None:
        raise NotAuthenticatedError()

    async def delete_templates(self, template_ids: list[str]) -> None:
        raise NotAuthenticatedError()


def _noop() -> None:
    return None


BackendFactory = Callable[[SessionContext], TrackerBackend]


def make_backend_factory(
    guest_storage: GuestStorage, gateway: RemoteGateway | None
) -> BackendFactory:
    """Return a factory choosing the storage strategy for a session."""

    def backend_for(session: SessionContext) -> TrackerBackend:
        if session.mode is SessionMode.AUTHENTICATED and session.user_id is not None:
            if gateway is None:
                raise RuntimeError("Remote storage is not configured")
            return RemoteBackend(gateway=gateway, user_id=session.user_id)
        if session.mode is SessionMode.GUEST:
            return GuestBackend(storage=guest_storage)
        return SignedOutBackend()

    return backend_for
