"""Peer feedback endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends

from prompt_crit.api.auth import current_identity, get_container
from prompt_crit.api.models import FeedbackRequest
from prompt_crit.containers import AppContainer
from prompt_crit.domain.models import Identity
from prompt_crit.services.feedback import feedback_to_record

router = APIRouter(tags=["feedback"])


@router.post("/feedback/{session_id}")
async def submit_feedback(
    session_id: UUID,
    payload: FeedbackRequest,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Upsert the caller's feedback for a peer."""
    feedback = container.feedback_service.submit(
        session_id,
        caller,
        payload.recipient_email,
        critique=payload.critique,
        questions=payload.questions,
    )
    return {"success": True, "feedback": feedback_to_record(feedback)}


@router.get("/feedback/{session_id}/{email}")
async def list_feedback(
    session_id: UUID,
    email: str,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return feedback addressed to a participant."""
    feedback = container.feedback_service.list_for(session_id, email, caller)
    return {"feedback": [feedback_to_record(entry) for entry in feedback]}
