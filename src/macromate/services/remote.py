"""Contract of the per-user remote store."""

from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from macromate.domain.entries import FoodEntry, FoodEntryDraft
from macromate.domain.goals import DailyGoal
from macromate.domain.templates import FoodTemplate, FoodTemplateDraft
from macromate.services.feeds import Unsubscribe


class RemoteGateway(Protocol):
    """Remote persistence scoped to one user per call.

    Feeds deliver the complete current value on subscribe and after every
    change. Updates of missing records raise ``NotFoundError``; deletes of
    missing records succeed.
    """

    def subscribe_entries(
        self, user_id: UUID, on_change: Callable[[list[FoodEntry]], None]
    ) -> Unsubscribe:
        """Follow a user's food entries."""

    def subscribe_goal(
        self, user_id: UUID, on_change: Callable[[DailyGoal | None], None]
    ) -> Unsubscribe:
        """Follow a user's goal."""

    def subscribe_templates(
        self, user_id: UUID, on_change: Callable[[list[FoodTemplate]], None]
    ) -> Unsubscribe:
        """Follow a user's templates."""

    def create_entry(
        self, user_id: UUID, draft: FoodEntryDraft, timestamp: int
    ) -> FoodEntry:
        """Insert an entry and return it with its store-assigned id."""

    def put_entry(self, user_id: UUID, entry: FoodEntry) -> None:
        """Insert or overwrite an entry under its own id."""

    def update_entry(
        self, user_id: UUID, entry_id: str, changes: dict[str, object]
    ) -> None:
        """Apply partial changes to an entry."""

    def delete_entry(self, user_id: UUID, entry_id: str) -> None:
        """Delete an entry."""

    def save_goal(self, user_id: UUID, goal: DailyGoal) -> None:
        """Replace the user's goal."""

    def create_template(
        self, user_id: UUID, draft: FoodTemplateDraft
    ) -> FoodTemplate:
        """Insert a template and return it with its store-assigned id."""

    def put_template(self, user_id: UUID, template: FoodTemplate) -> None:
        """Insert or overwrite a template under its own id."""

    def update_template(
        self, user_id: UUID, template_id: str, changes: dict[str, object]
    ) -> None:
        """Apply partial changes to a template."""

    def delete_template(self, user_id: UUID, template_id: str) -> None:
        """Delete a template."""

    def delete_templates(self, user_id: UUID, template_ids: list[str]) -> None:
        """Delete several templates atomically."""
