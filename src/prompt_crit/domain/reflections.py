"""Domain models for participant reflections."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class ReflectionRecord:
    """A participant's saved reflection for one session."""

    session_id: UUID
    participant_email: str
    responses: dict[str, str]
    screenshots: list[str]
    completed: bool
    updated_at: datetime


@dataclass(frozen=True)
class PeerProject:
    """A completed reflection as shown to peers."""

    email: str
    display_name: str
    summary: str
    screenshots: list[str] = field(default_factory=list)
    responses: dict[str, str] = field(default_factory=dict)
