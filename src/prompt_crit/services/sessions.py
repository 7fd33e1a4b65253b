"""Session lifecycle state machine."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from prompt_crit.domain.errors import (
    Conflict,
    Forbidden,
    InvalidArgument,
    InvalidTransition,
    NotFound,
)
from prompt_crit.domain.models import Identity, Role
from prompt_crit.domain.sessions import RosterEntry, SessionRecord, SessionStatus
from prompt_crit.services.store import SESSION_PREFIX, RecordStore, session_key
from prompt_crit.services.validation import (
    normalize_email,
    require_length,
    sanitize_text,
)

logger = logging.getLogger(__name__)

MAX_SESSION_NAME_LENGTH = 200
MAX_ROSTER_SIZE = 500
MAX_ROSTER_NAME_LENGTH = 100

REOPEN_PHASES = {SessionStatus.REFLECTION, SessionStatus.CRITIQUE}


@dataclass(frozen=True)
class _Transition:
    sources: frozenset[SessionStatus]
    target: SessionStatus
    stamp: str
    error: str


_TRANSITIONS: dict[str, _Transition] = {
    "start": _Transition(
        frozenset({SessionStatus.SETUP}),
        SessionStatus.REFLECTION,
        "started_at",
        "Session must be in setup phase to start",
    ),
    "advance": _Transition(
        frozenset({SessionStatus.REFLECTION}),
        SessionStatus.CRITIQUE,
        "advanced_at",
        "Session must be in reflection phase to advance",
    ),
    "complete": _Transition(
        frozenset({SessionStatus.CRITIQUE}),
        SessionStatus.COMPLETE,
        "completed_at",
        "Session must be in critique phase to complete",
    ),
    "archive": _Transition(
        frozenset(SessionStatus),
        SessionStatus.ARCHIVED,
        "archived_at",
        "Session cannot be archived",
    ),
    "reopen": _Transition(
        frozenset({SessionStatus.COMPLETE, SessionStatus.ARCHIVED}),
        SessionStatus.CRITIQUE,
        "reopened_at",
        "Session must be complete or archived to reopen",
    ),
}


@dataclass
class SessionService:
    """Owns review sessions and their phase transitions."""

    store: RecordStore
    require_roster_to_start: bool = False
    lock_roster_after_start: bool = False

    def create(self, caller: Identity, name: object) -> SessionRecord:
        """Create a session in the setup phase."""
        if caller.role is not Role.ORGANIZER:
            raise Forbidden("Only organizers can create sessions")
        cleaned = sanitize_text(
            require_length(name, "Session name", 1, MAX_SESSION_NAME_LENGTH)
        )
        session = SessionRecord(
            id=uuid4(),
            owner_id=caller.id,
            owner_email=caller.email,
            name=cleaned,
            status=SessionStatus.SETUP,
            created_at=datetime.now(tz=UTC),
        )
        self.store.set(session_key(session.id), session_to_record(session))
        logger.info(
            "Created session",
            extra={"session_id": str(session.id), "owner_id": caller.id},
        )
        return session

    def load(self, session_id: UUID) -> SessionRecord:
        """Return a session by id without access checks."""
        raw = self.store.get(session_key(session_id))
        if raw is None:
            raise NotFound("Session not found")
        return session_from_record(raw)

    def get(self, session_id: UUID, caller: Identity) -> SessionRecord:
        """Return a session visible to its owner or roster members."""
        session = self.load(session_id)
        if not session.is_owner(caller.id) and not session.is_enrolled(caller.email):
            raise Forbidden("Forbidden")
        return session

    def list_for(self, caller: Identity) -> list[SessionRecord]:
        """Return sessions the caller owns or is enrolled in, newest first."""
        sessions = [
            session_from_record(raw) for raw in self.store.get_by_prefix(SESSION_PREFIX)
        ]
        visible = [
            session
            for session in sessions
            if session.is_owner(caller.id) or session.is_enrolled(caller.email)
        ]
        return sorted(visible, key=lambda session: session.created_at, reverse=True)

    def replace_roster(
        self, session_id: UUID, caller: Identity, entries: object
    ) -> SessionRecord:
        """Replace the roster wholesale."""
        roster = _parse_roster(entries)
        session = self._load_owned(session_id, caller)
        if session.status is not SessionStatus.SETUP:
            if self.lock_roster_after_start:
                raise InvalidTransition(
                    "Roster can only be changed during the setup phase"
                )
            logger.warning(
                "Roster replaced after session start",
                extra={"session_id": str(session_id), "status": session.status.value},
            )
        return self._write(replace(session, roster=roster))

    def start(self, session_id: UUID, caller: Identity) -> SessionRecord:
        """Move a session from setup to reflection."""
        session = self._load_owned(session_id, caller)
        if session.status is SessionStatus.SETUP and not session.roster:
            if self.require_roster_to_start:
                raise InvalidTransition("Add at least one participant before starting")
            logger.warning(
                "Starting session with an empty roster",
                extra={"session_id": str(session_id)},
            )
        return self._apply(session, "start")

    def advance(self, session_id: UUID, caller: Identity) -> SessionRecord:
        """Move a session from reflection to critique."""
        return self._apply(self._load_owned(session_id, caller), "advance")

    def complete(self, session_id: UUID, caller: Identity) -> SessionRecord:
        """Move a session from critique to complete."""
        return self._apply(self._load_owned(session_id, caller), "complete")

    def archive(self, session_id: UUID, caller: Identity) -> SessionRecord:
        """Archive a session from any phase."""
        return self._apply(self._load_owned(session_id, caller), "archive")

    def reopen(
        self, session_id: UUID, caller: Identity, phase: str | None = None
    ) -> SessionRecord:
        """Reopen a complete or archived session into reflection or critique."""
        target = _parse_reopen_phase(phase)
        session = self._load_owned(session_id, caller)
        return self._apply(session, "reopen", target=target)

    def _load_owned(self, session_id: UUID, caller: Identity) -> SessionRecord:
        session = self.load(session_id)
        if not session.is_owner(caller.id):
            raise Forbidden("Forbidden")
        return session

    def _apply(
        self,
        session: SessionRecord,
        action: str,
        target: SessionStatus | None = None,
    ) -> SessionRecord:
        transition = _TRANSITIONS[action]
        if session.status not in transition.sources:
            raise InvalidTransition(transition.error)
        new_status = target or transition.target
        updated = replace(
            session,
            status=new_status,
            **{transition.stamp: datetime.now(tz=UTC)},
        )
        written = self._write(updated)
        logger.info(
            "Session transitioned",
            extra={
                "session_id": str(session.id),
                "action": action,
                "from_status": session.status.value,
                "to_status": new_status.value,
            },
        )
        return written

    def _write(self, session: SessionRecord) -> SessionRecord:
        """Persist a mutated session with a version check."""
        expected = session.version
        updated = replace(session, version=expected + 1)
        if not self.store.set_if_version(
            session_key(session.id), session_to_record(updated), expected
        ):
            raise Conflict("Session was modified concurrently; reload and retry")
        return updated


def _parse_reopen_phase(phase: str | None) -> SessionStatus:
    if phase is None or phase == "":
        return SessionStatus.CRITIQUE
    try:
        parsed = SessionStatus(phase)
    except ValueError:
        parsed = None
    if parsed not in REOPEN_PHASES:
        raise InvalidArgument('Phase must be "reflection" or "critique"')
    return parsed


def _parse_roster(entries: object) -> tuple[RosterEntry, ...]:
    if not isinstance(entries, list | tuple):
        raise InvalidArgument("Roster must be a list of participants")
    if len(entries) > MAX_ROSTER_SIZE:
        raise InvalidArgument(
            f"Roster cannot have more than {MAX_ROSTER_SIZE} participants"
        )
    roster = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise InvalidArgument("Each participant must have an email and a name")
        email = normalize_email(entry.get("email"), "participant email")
        raw_name = entry.get("displayName", entry.get("name"))
        try:
            name = require_length(raw_name, "Name", 1, MAX_ROSTER_NAME_LENGTH)
        except InvalidArgument as exc:
            raise InvalidArgument(f"Invalid name for {email}: {exc.message}") from exc
        roster.append(RosterEntry(email=email, display_name=sanitize_text(name)))
    return tuple(roster)


def session_to_record(session: SessionRecord) -> dict[str, object]:
    """Serialize a session for the record store."""
    return {
        "id": str(session.id),
        "ownerId": session.owner_id,
        "ownerEmail": session.owner_email,
        "name": session.name,
        "status": session.status.value,
        "roster": [
            {"email": entry.email, "displayName": entry.display_name}
            for entry in session.roster
        ],
        "createdAt": session.created_at.isoformat(),
        "startedAt": _isoformat(session.started_at),
        "advancedAt": _isoformat(session.advanced_at),
        "completedAt": _isoformat(session.completed_at),
        "archivedAt": _isoformat(session.archived_at),
        "reopenedAt": _isoformat(session.reopened_at),
        "version": session.version,
    }


def session_from_record(raw: dict[str, object]) -> SessionRecord:
    """Deserialize a session from the record store."""
    roster_rows = raw.get("roster", [])
    roster = tuple(
        RosterEntry(
            email=str(row.get("email", "")).lower(),
            display_name=str(row.get("displayName", "")),
        )
        for row in (roster_rows if isinstance(roster_rows, list) else [])
        if isinstance(row, dict)
    )
    return SessionRecord(
        id=UUID(str(raw["id"])),
        owner_id=str(raw.get("ownerId", "")),
        owner_email=str(raw.get("ownerEmail", "")),
        name=str(raw.get("name", "")),
        status=SessionStatus(str(raw.get("status", SessionStatus.SETUP.value))),
        created_at=datetime.fromisoformat(str(raw["createdAt"])),
        roster=roster,
        started_at=_parse_datetime(raw.get("startedAt")),
        advanced_at=_parse_datetime(raw.get("advancedAt")),
        completed_at=_parse_datetime(raw.get("completedAt")),
        archived_at=_parse_datetime(raw.get("archivedAt")),
        reopened_at=_parse_datetime(raw.get("reopenedAt")),
        version=int(raw.get("version", 1)),
    )


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: object) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value))
