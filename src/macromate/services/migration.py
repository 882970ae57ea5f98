"""One-shot move of guest data into a new account."""

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from uuid import UUID, uuid5

from macromate.services.local_store import GuestStorage
from macromate.services.remote import RemoteGateway

_logger = logging.getLogger(__name__)


class MigrationOutcome(StrEnum):
    NOTHING_TO_MIGRATE = "nothing_to_migrate"
    MIGRATED = "migrated"
    FAILED = "failed"


@dataclass(frozen=True)
class MigrationResult:
    """What a migration run moved, or why it stopped."""

    outcome: MigrationOutcome
    entries: int = 0
    goal: bool = False
    templates: int = 0
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not MigrationOutcome.FAILED


def migrated_id(user_id: UUID, kind: str, local_id: str) -> str:
    """Return the remote id a local record is stored under.

    Ids derive from the user and the local id, so running the migration again
    after a partial failure overwrites the rows written the first time.
    """
    return str(uuid5(user_id, f"{kind}:{local_id}"))


@dataclass
class MigrationService:
    storage: GuestStorage
    gateway: RemoteGateway

    async def migrate(self, user_id: UUID) -> MigrationResult:
        """Copy guest entries, goal and templates to the user, then clear them.

        Local data is only cleared after every write succeeded.
        """
        entries = self.storage.load_entries()
        goal = self.storage.load_goal()
        templates = self.storage.load_templates()
        if not entries and goal is None and not templates:
            return MigrationResult(outcome=MigrationOutcome.NOTHING_TO_MIGRATE)

        template_ids = {
            template.id: migrated_id(user_id, "template", template.id)
            for template in templates
        }
        try:
            for template in templates:
                self.gateway.put_template(
                    user_id, replace(template, id=template_ids[template.id])
                )
            for entry in entries:
                self.gateway.put_entry(
                    user_id,
                    replace(
                        entry,
                        id=migrated_id(user_id, "entry", entry.id),
                        template_id=template_ids.get(
                            entry.template_id or "", entry.template_id
                        ),
                    ),
                )
            if goal is not None:
                self.gateway.save_goal(user_id, goal)
        except Exception as error:
            _logger.exception("Failed to migrate guest data for user %s", user_id)
            return MigrationResult(outcome=MigrationOutcome.FAILED, error=error)

        self.storage.clear()
        _logger.info(
            "Migrated guest data for user %s: entries=%s goal=%s templates=%s",
            user_id,
            len(entries),
            goal is not None,
            len(templates),
        )
        return MigrationResult(
            outcome=MigrationOutcome.MIGRATED,
            entries=len(entries),
            goal=goal is not None,
            templates=len(templates),
        )
