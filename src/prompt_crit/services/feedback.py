"""Peer feedback exchange."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from prompt_crit.domain.errors import Forbidden, InvalidArgument, InvalidTransition
from prompt_crit.domain.feedback import FeedbackRecord
from prompt_crit.domain.models import Identity
from prompt_crit.domain.sessions import SessionStatus
from prompt_crit.services.sessions import SessionService
from prompt_crit.services.store import RecordStore, feedback_key, feedback_prefix
from prompt_crit.services.validation import normalize_email, sanitize_text

logger = logging.getLogger(__name__)

MAX_CRITIQUE_LENGTH = 5000
MAX_QUESTIONS_LENGTH = 2000


@dataclass
class FeedbackService:
    """Stores feedback between participants of a session."""

    store: RecordStore
    sessions: SessionService

    def submit(
        self,
        session_id: UUID,
        caller: Identity,
        recipient_email: object,
        critique: object = "",
        questions: object = "",
    ) -> FeedbackRecord:
        """Upsert the caller's feedback for one recipient."""
        recipient = normalize_email(recipient_email, "recipient email")
        author = caller.email.lower()
        if recipient == author:
            raise InvalidArgument("Cannot submit feedback to yourself")
        critique_text = _bounded_text(critique, "Critique", MAX_CRITIQUE_LENGTH)
        questions_text = _bounded_text(questions, "Questions", MAX_QUESTIONS_LENGTH)

        session = self.sessions.load(session_id)
        if not session.is_enrolled(author):
            raise Forbidden("Forbidden - not enrolled in session")
        if not session.is_enrolled(recipient):
            raise InvalidArgument("Recipient not found in session")
        if session.status is SessionStatus.ARCHIVED:
            raise InvalidTransition("Session is archived")

        feedback = FeedbackRecord(
            session_id=session_id,
            author_email=author,
            recipient_email=recipient,
            critique=sanitize_text(critique_text),
            questions=sanitize_text(questions_text),
            created_at=datetime.now(tz=UTC),
        )
        self.store.set(
            feedback_key(session_id, author, recipient), feedback_to_record(feedback)
        )
        logger.info("Saved feedback", extra={"session_id": str(session_id)})
        return feedback

    def list_for(
        self, session_id: UUID, recipient_email: object, caller: Identity
    ) -> list[FeedbackRecord]:
        """Return feedback addressed to a recipient."""
        recipient = normalize_email(recipient_email)
        session = self.sessions.load(session_id)
        if not session.is_owner(caller.id) and caller.email.lower() != recipient:
            raise Forbidden("Forbidden")
        return [
            feedback
            for feedback in self.list_for_session(session_id)
            if feedback.recipient_email == recipient
        ]

    def list_for_session(self, session_id: UUID) -> list[FeedbackRecord]:
        """Return every feedback record stored for a session."""
        return [
            feedback_from_record(raw)
            for raw in self.store.get_by_prefix(feedback_prefix(session_id))
        ]


def _bounded_text(value: object, label: str, max_length: int) -> str:
    if value is None:
        return ""
    if not isinstance(value, str) or len(value) > max_length:
        raise InvalidArgument(f"{label} must be under {max_length} characters")
    return value


def feedback_to_record(feedback: FeedbackRecord) -> dict[str, object]:
    """Serialize feedback for the record store."""
    return {
        "sessionId": str(feedback.session_id),
        "authorEmail": feedback.author_email,
        "recipientEmail": feedback.recipient_email,
        "critique": feedback.critique,
        "questions": feedback.questions,
        "createdAt": feedback.created_at.isoformat(),
    }


def feedback_from_record(raw: dict[str, object]) -> FeedbackRecord:
    """Deserialize feedback from the record store."""
    return FeedbackRecord(
        session_id=UUID(str(raw["sessionId"])),
        author_email=str(raw.get("authorEmail", "")).lower(),
        recipient_email=str(raw.get("recipientEmail", "")).lower(),
        critique=str(raw.get("critique", "")),
        questions=str(raw.get("questions", "")),
        created_at=datetime.fromisoformat(str(raw["createdAt"])),
    )
