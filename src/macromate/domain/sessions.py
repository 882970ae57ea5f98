"""Domain models for the current session."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class SessionMode(StrEnum):
    """Which storage a session reads and writes."""

    SIGNED_OUT = "signed_out"
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionContext:
    """Identity of whoever is using the tracker."""

    user_id: UUID | None = None
    is_guest: bool = False

    @property
    def mode(self) -> SessionMode:
        if self.user_id is not None:
            return SessionMode.AUTHENTICATED
        if self.is_guest:
            return SessionMode.GUEST
        return SessionMode.SIGNED_OUT


SIGNED_OUT = SessionContext()
GUEST = SessionContext(is_guest=True)
