"""Reflection ledger for session participants."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID

from prompt_crit.domain.errors import Forbidden, InvalidArgument, InvalidTransition
from prompt_crit.domain.models import Identity
from prompt_crit.domain.reflections import PeerProject, ReflectionRecord
from prompt_crit.domain.sessions import SessionRecord, SessionStatus
from prompt_crit.services.sessions import SessionService
from prompt_crit.services.store import RecordStore, reflection_key, reflection_prefix
from prompt_crit.services.validation import normalize_email, sanitize_text

logger = logging.getLogger(__name__)

MAX_RESPONSE_ENTRIES = 50
MAX_RESPONSE_KEY_LENGTH = 100
MAX_SCREENSHOTS = 10
MAX_SCREENSHOT_REF_LENGTH = 2048


class PeerVisibility(StrEnum):
    """Whether enrolled peers may read reflections that are still in progress."""

    COMPLETED_ONLY = "completed_only"
    ALL = "all"


@dataclass
class ReflectionService:
    """Stores and serves per-participant reflections."""

    store: RecordStore
    sessions: SessionService
    peer_visibility: PeerVisibility = PeerVisibility.COMPLETED_ONLY

    def save(
        self,
        session_id: UUID,
        caller: Identity,
        responses: object = None,
        screenshots: object = None,
        completed: object = False,
    ) -> ReflectionRecord:
        """Upsert the caller's own reflection.

        Completeness is trusted from the caller: the guided conversation is
        responsible for requiring screenshots and a summary before it sends
        ``completed=True``.
        """
        cleaned_responses = _clean_responses(responses)
        cleaned_screenshots = _clean_screenshots(screenshots)
        session = self.sessions.load(session_id)
        if not session.is_enrolled(caller.email):
            raise Forbidden("Forbidden - not enrolled in session")
        _require_writable(session)

        reflection = ReflectionRecord(
            session_id=session_id,
            participant_email=caller.email.lower(),
            responses=cleaned_responses,
            screenshots=cleaned_screenshots,
            completed=completed is True,
            updated_at=datetime.now(tz=UTC),
        )
        self.store.set(
            reflection_key(session_id, reflection.participant_email),
            reflection_to_record(reflection),
        )
        if reflection.completed:
            logger.info(
                "Reflection completed",
                extra={"session_id": str(session_id)},
            )
        return reflection

    def get(
        self, session_id: UUID, email: object, caller: Identity
    ) -> ReflectionRecord | None:
        """Return a participant's reflection if the caller may see it."""
        target = normalize_email(email)
        session = self.sessions.load(session_id)
        is_owner = session.is_owner(caller.id)
        is_author = caller.email.lower() == target
        if not (is_owner or is_author or session.is_enrolled(caller.email)):
            raise Forbidden("Forbidden")

        raw = self.store.get(reflection_key(session_id, target))
        if raw is None:
            return None
        reflection = reflection_from_record(raw)
        if (
            not reflection.completed
            and not (is_owner or is_author)
            and self.peer_visibility is PeerVisibility.COMPLETED_ONLY
        ):
            raise Forbidden("Reflection has not been shared yet")
        return reflection

    def list_for_session(self, session_id: UUID) -> list[ReflectionRecord]:
        """Return every stored reflection for a session."""
        return [
            reflection_from_record(raw)
            for raw in self.store.get_by_prefix(reflection_prefix(session_id))
        ]

    def list_projects(self, session_id: UUID, caller: Identity) -> list[PeerProject]:
        """Return other participants' completed reflections for peer review."""
        session = self.sessions.get(session_id, caller)
        caller_email = caller.email.lower()
        return [
            _to_project(session, reflection)
            for reflection in self.list_for_session(session_id)
            if reflection.completed and reflection.participant_email != caller_email
        ]


def _require_writable(session: SessionRecord) -> None:
    if session.status is SessionStatus.ARCHIVED:
        raise InvalidTransition("Session is archived")


def _clean_responses(responses: object) -> dict[str, str]:
    if responses is None:
        return {}
    if not isinstance(responses, dict):
        raise InvalidArgument("Responses must be an object")
    if len(responses) > MAX_RESPONSE_ENTRIES:
        raise InvalidArgument(
            f"Responses cannot have more than {MAX_RESPONSE_ENTRIES} entries"
        )
    cleaned: dict[str, str] = {}
    for key, value in responses.items():
        if not isinstance(key, str) or not 1 <= len(key) <= MAX_RESPONSE_KEY_LENGTH:
            raise InvalidArgument(
                f"Response keys must be between 1 and {MAX_RESPONSE_KEY_LENGTH} "
                "characters"
            )
        if isinstance(value, str):
            cleaned[key] = sanitize_text(value)
    return cleaned


def _clean_screenshots(screenshots: object) -> list[str]:
    if screenshots is None:
        return []
    if not isinstance(screenshots, list) or len(screenshots) > MAX_SCREENSHOTS:
        raise InvalidArgument(
            f"Screenshots must be an array with max {MAX_SCREENSHOTS} items"
        )
    for ref in screenshots:
        if not isinstance(ref, str) or len(ref) > MAX_SCREENSHOT_REF_LENGTH:
            raise InvalidArgument("Screenshots must be reference strings")
    return list(screenshots)


def _to_project(session: SessionRecord, reflection: ReflectionRecord) -> PeerProject:
    entry = session.roster_entry(reflection.participant_email)
    display_name = (
        reflection.responses.get("name")
        or (entry.display_name if entry else "")
        or reflection.participant_email
    )
    return PeerProject(
        email=reflection.participant_email,
        display_name=display_name,
        summary=reflection.responses.get("projectSummary", ""),
        screenshots=list(reflection.screenshots),
        responses=dict(reflection.responses),
    )


def reflection_to_record(reflection: ReflectionRecord) -> dict[str, object]:
    """Serialize a reflection for the record store."""
    return {
        "sessionId": str(reflection.session_id),
        "participantEmail": reflection.participant_email,
        "responses": reflection.responses,
        "screenshots": reflection.screenshots,
        "completed": reflection.completed,
        "updatedAt": reflection.updated_at.isoformat(),
    }


def reflection_from_record(raw: dict[str, object]) -> ReflectionRecord:
    """Deserialize a reflection from the record store."""
    responses = raw.get("responses") or {}
    screenshots = raw.get("screenshots") or []
    return ReflectionRecord(
        session_id=UUID(str(raw["sessionId"])),
        participant_email=str(raw.get("participantEmail", "")).lower(),
        responses={
            str(key): str(value)
            for key, value in (responses.items() if isinstance(responses, dict) else [])
        },
        screenshots=[str(ref) for ref in screenshots]
        if isinstance(screenshots, list)
        else [],
        completed=raw.get("completed") is True,
        updated_at=datetime.fromisoformat(str(raw["updatedAt"])),
    )
