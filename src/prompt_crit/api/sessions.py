"""Session lifecycle endpoints."""

from uuid import UUID

from fastapi import APIRouter, Body, Depends

from prompt_crit.api.auth import current_identity, get_container
from prompt_crit.api.models import CreateSessionRequest, ReopenRequest, RosterRequest
from prompt_crit.containers import AppContainer
from prompt_crit.domain.models import Identity
from prompt_crit.domain.progress import ProgressSummary
from prompt_crit.services.sessions import session_to_record

router = APIRouter(tags=["sessions"])


@router.post("/session")
async def create_session(
    payload: CreateSessionRequest,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Create a session owned by the calling organizer."""
    session = container.session_service.create(caller, payload.name)
    return {"success": True, "session": session_to_record(session)}


@router.get("/sessions")
async def list_sessions(
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return sessions the caller owns or is enrolled in."""
    sessions = container.session_service.list_for(caller)
    return {"sessions": [session_to_record(session) for session in sessions]}


@router.get("/session/{session_id}")
async def get_session(
    session_id: UUID,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return a session snapshot for its owner or roster members."""
    session = container.session_service.get(session_id, caller)
    return {"session": session_to_record(session)}


@router.post("/session/{session_id}/roster")
async def replace_roster(
    session_id: UUID,
    payload: RosterRequest,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Replace the session roster."""
    session = container.session_service.replace_roster(
        session_id, caller, payload.roster
    )
    return {"success": True, "session": session_to_record(session)}


@router.post("/session/{session_id}/start")
async def start_session(
    session_id: UUID,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Open the reflection phase."""
    session = container.session_service.start(session_id, caller)
    return {"success": True, "session": session_to_record(session)}


@router.post("/session/{session_id}/advance")
async def advance_session(
    session_id: UUID,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Move from reflection to critique."""
    session = container.session_service.advance(session_id, caller)
    return {"success": True, "session": session_to_record(session)}


@router.post("/session/{session_id}/complete")
async def complete_session(
    session_id: UUID,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Close the critique phase."""
    session = container.session_service.complete(session_id, caller)
    return {"success": True, "session": session_to_record(session)}


@router.post("/session/{session_id}/archive")
async def archive_session(
    session_id: UUID,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Archive the session."""
    session = container.session_service.archive(session_id, caller)
    return {"success": True, "session": session_to_record(session)}


@router.post("/session/{session_id}/reopen")
async def reopen_session(
    session_id: UUID,
    payload: ReopenRequest | None = Body(default=None),
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Reopen a complete or archived session."""
    phase = payload.phase if payload else None
    session = container.session_service.reopen(session_id, caller, phase)
    return {"success": True, "session": session_to_record(session)}


@router.get("/session/{session_id}/progress")
async def session_progress(
    session_id: UUID,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return the owner's progress dashboard data."""
    summary = container.progress_service.summarize(session_id, caller)
    return serialize_progress(summary)


def serialize_progress(summary: ProgressSummary) -> dict[str, object]:
    return {
        "totalStudents": summary.total_students,
        "completedReflections": summary.completed_reflections,
        "feedbackSubmissions": summary.feedback_submissions,
        "studentProgress": [
            {
                "email": student.email,
                "displayName": student.display_name,
                "reflectionComplete": student.reflection_complete,
                "feedbackGivenCount": student.feedback_given_count,
            }
            for student in summary.students
        ],
    }
