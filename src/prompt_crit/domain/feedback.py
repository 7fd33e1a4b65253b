"""Domain models for peer feedback."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class FeedbackRecord:
    """Feedback from one participant to another within a session."""

    session_id: UUID
    author_email: str
    recipient_email: str
    critique: str
    questions: str
    created_at: datetime
