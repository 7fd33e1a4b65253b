"""Domain models for users and caller identities."""

from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    """Declared role of a registered user."""

    ORGANIZER = "organizer"
    PARTICIPANT = "participant"


@dataclass(frozen=True)
class UserRecord:
    """Represents a registered user stored under ``user:{email}``."""

    id: str
    email: str
    display_name: str
    role: Role


@dataclass(frozen=True)
class Identity:
    """Caller identity resolved from an inbound credential."""

    id: str
    email: str
    email_verified: bool
    role: Role | None = None
