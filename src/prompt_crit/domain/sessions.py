"""Domain models for review sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class SessionStatus(StrEnum):
    """Phases a review session moves through."""

    SETUP = "setup"
    REFLECTION = "reflection"
    CRITIQUE = "critique"
    COMPLETE = "complete"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class RosterEntry:
    """A participant enrolled in a session."""

    email: str
    display_name: str


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted review session."""

    id: UUID
    owner_id: str
    owner_email: str
    name: str
    status: SessionStatus
    created_at: datetime
    roster: tuple[RosterEntry, ...] = ()
    started_at: datetime | None = None
    advanced_at: datetime | None = None
    completed_at: datetime | None = None
    archived_at: datetime | None = None
    reopened_at: datetime | None = None
    version: int = 1

    def is_owner(self, user_id: str) -> bool:
        """Return True when the user created the session."""
        return self.owner_id == user_id

    def is_enrolled(self, email: str) -> bool:
        """Return True when the email appears in the roster."""
        needle = email.strip().lower()
        return any(entry.email.lower() == needle for entry in self.roster)

    def roster_entry(self, email: str) -> RosterEntry | None:
        needle = email.strip().lower()
        for entry in self.roster:
            if entry.email.lower() == needle:
                return entry
        return None
