"""Supabase gateway for food entries, goals and templates."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar
from uuid import UUID

from supabase import Client

from macromate.documents import (
    FoodEntryDocument,
    GoalDocument,
    TemplateDocument,
    changes_payload,
    row_payload,
)
from macromate.domain.entries import (
    FoodEntry,
    FoodEntryDraft,
    validate_entry_changes,
)
from macromate.domain.errors import NotFoundError
from macromate.domain.goals import DailyGoal
from macromate.domain.templates import (
    FoodTemplate,
    FoodTemplateDraft,
    validate_template_changes,
)
from macromate.services.feeds import ListenerRegistry, Unsubscribe
from macromate.services.remote import RemoteGateway

FOODS_TABLE = "foods"
GOALS_TABLE = "goals"
TEMPLATES_TABLE = "templates"

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SupabaseTrackerGateway(RemoteGateway):
    """Supabase implementation of the per-user remote store.

    Every query and write filters on ``user_id``. Feeds are refreshed after
    each write made through this gateway and on ``refresh``.
    """

    client: Client
    _entry_feed: ListenerRegistry[list[FoodEntry]] = field(
        default_factory=ListenerRegistry, init=False, repr=False
    )
    _goal_feed: ListenerRegistry[DailyGoal | None] = field(
        default_factory=ListenerRegistry, init=False, repr=False
    )
    _template_feed: ListenerRegistry[list[FoodTemplate]] = field(
        default_factory=ListenerRegistry, init=False, repr=False
    )

    def list_entries(self, user_id: UUID) -> list[FoodEntry]:
        """Return a user's entries, newest first."""
        response = (
            self.client.table(FOODS_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("timestamp", desc=True)
            .execute()
        )
        return [
            FoodEntryDocument.model_validate(row).to_entry()
            for row in response.data or []
        ]

    def get_goal(self, user_id: UUID) -> DailyGoal | None:
        """Return a user's goal, if one was saved."""
        response = (
            self.client.table(GOALS_TABLE)
            .select("calories, protein, carbs, fat")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return GoalDocument.model_validate(response.data[0]).to_goal()

    def list_templates(self, user_id: UUID) -> list[FoodTemplate]:
        """Return a user's templates ordered by name."""
        response = (
            self.client.table(TEMPLATES_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("name", desc=False)
            .execute()
        )
        return [
            TemplateDocument.model_validate(row).to_template()
            for row in response.data or []
        ]

    def subscribe_entries(
        self, user_id: UUID, on_change: Callable[[list[FoodEntry]], None]
    ) -> Unsubscribe:
        """Deliver the entries now and after every change."""
        unsubscribe = self._entry_feed.add(user_id, on_change)
        on_change(self._read_feed("entries", user_id, self.list_entries, []))
        return unsubscribe

    def subscribe_goal(
        self, user_id: UUID, on_change: Callable[[DailyGoal | None], None]
    ) -> Unsubscribe:
        """Deliver the goal now and after every change."""
        unsubscribe = self._goal_feed.add(user_id, on_change)
        on_change(self._read_feed("goal", user_id, self.get_goal, None))
        return unsubscribe

    def subscribe_templates(
        self, user_id: UUID, on_change: Callable[[list[FoodTemplate]], None]
    ) -> Unsubscribe:
        """Deliver the templates now and after every change."""
        unsubscribe = self._template_feed.add(user_id, on_change)
        on_change(self._read_feed("templates", user_id, self.list_templates, []))
        return unsubscribe

    def refresh(self, user_id: UUID) -> None:
        """Re-read all feeds for a user to pick up changes from other devices."""
        self._publish_entries(user_id)
        self._publish_goal(user_id)
        self._publish_templates(user_id)

    def create_entry(
        self, user_id: UUID, draft: FoodEntryDraft, timestamp: int
    ) -> FoodEntry:
        """Insert an entry row and return it."""
        payload = row_payload(FoodEntryDocument.from_draft(draft, timestamp))
        response = (
            self.client.table(FOODS_TABLE)
            .insert({**payload, "user_id": str(user_id)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create food entry")
        self._publish_entries(user_id)
        return FoodEntryDocument.model_validate(response.data[0]).to_entry()

    def put_entry(self, user_id: UUID, entry: FoodEntry) -> None:
        """Upsert an entry row under its id."""
        payload = row_payload(FoodEntryDocument.from_entry(entry), include_id=True)
        self.client.table(FOODS_TABLE).upsert(
            {**payload, "user_id": str(user_id)}
        ).execute()
        self._publish_entries(user_id)

    def update_entry(
        self, user_id: UUID, entry_id: str, changes: dict[str, object]
    ) -> None:
        """Update an entry row."""
        validate_entry_changes(changes)
        response = (
            self.client.table(FOODS_TABLE)
            .update(changes_payload(changes))
            .eq("id", entry_id)
            .eq("user_id", str(user_id))
            .execute()
        )
        if not response.data:
            raise NotFoundError("Food entry", entry_id)
        self._publish_entries(user_id)

    def delete_entry(self, user_id: UUID, entry_id: str) -> None:
        """Delete an entry row; missing rows are ignored."""
        self.client.table(FOODS_TABLE).delete().eq("id", entry_id).eq(
            "user_id", str(user_id)
        ).execute()
        self._publish_entries(user_id)

    def save_goal(self, user_id: UUID, goal: DailyGoal) -> None:
        """Insert or replace the user's goal row."""
        payload = row_payload(GoalDocument.from_goal(goal))
        self.client.table(GOALS_TABLE).upsert(
            {**payload, "user_id": str(user_id)}, on_conflict="user_id"
        ).execute()
        self._publish_goal(user_id)

    def create_template(
        self, user_id: UUID, draft: FoodTemplateDraft
    ) -> FoodTemplate:
        """Insert a template row and return it."""
        payload = row_payload(TemplateDocument.from_template(draft))
        response = (
            self.client.table(TEMPLATES_TABLE)
            .insert({**payload, "user_id": str(user_id)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create template")
        self._publish_templates(user_id)
        return TemplateDocument.model_validate(response.data[0]).to_template()

    def put_template(self, user_id: UUID, template: FoodTemplate) -> None:
        """Upsert a template row under its id."""
        payload = row_payload(TemplateDocument.from_template(template), include_id=True)
        self.client.table(TEMPLATES_TABLE).upsert(
            {**payload, "user_id": str(user_id)}
        ).execute()
        self._publish_templates(user_id)

    def update_template(
        self, user_id: UUID, template_id: str, changes: dict[str, object]
    ) -> None:
        """Update a template row."""
        validate_template_changes(changes)
        response = (
            self.client.table(TEMPLATES_TABLE)
            .update(changes_payload(changes))
            .eq("id", template_id)
            .eq("user_id", str(user_id))
            .execute()
        )
        if not response.data:
            raise NotFoundError("Template", template_id)
        self._publish_templates(user_id)

    def delete_template(self, user_id: UUID, template_id: str) -> None:
        """Delete a template row; missing rows are ignored."""
        self.client.table(TEMPLATES_TABLE).delete().eq("id", template_id).eq(
            "user_id", str(user_id)
        ).execute()
        self._publish_templates(user_id)

    def delete_templates(self, user_id: UUID, template_ids: list[str]) -> None:
        """Delete several template rows in a single statement."""
        if not template_ids:
            return
        self.client.table(TEMPLATES_TABLE).delete().eq("user_id", str(user_id)).in_(
            "id", list(template_ids)
        ).execute()
        self._publish_templates(user_id)

    def _publish_entries(self, user_id: UUID) -> None:
        self._publish(self._entry_feed, "entries", user_id, self.list_entries)

    def _publish_goal(self, user_id: UUID) -> None:
        self._publish(self._goal_feed, "goal", user_id, self.get_goal)

    def _publish_templates(self, user_id: UUID) -> None:
        self._publish(self._template_feed, "templates", user_id, self.list_templates)

    @staticmethod
    def _publish(
        feed: ListenerRegistry[T],
        name: str,
        user_id: UUID,
        read: Callable[[UUID], T],
    ) -> None:
        if not feed.has_listeners(user_id):
            return
        try:
            value = read(user_id)
        except Exception:
            _logger.exception("Failed to refresh %s feed for user %s", name, user_id)
            return
        feed.publish(user_id, value)

    @staticmethod
    def _read_feed(
        name: str, user_id: UUID, read: Callable[[UUID], T], empty: T
    ) -> T:
        try:
            return read(user_id)
        except Exception:
            _logger.exception("Failed to read %s feed for user %s", name, user_id)
            return empty
