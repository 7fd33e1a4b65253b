"""Guided reflection dialogue endpoint."""

from fastapi import APIRouter, Depends

from prompt_crit.api.auth import current_identity, get_container
from prompt_crit.api.models import DialogueRequest
from prompt_crit.containers import AppContainer
from prompt_crit.domain.models import Identity

router = APIRouter(tags=["dialogue"])


@router.post("/ai-reflection")
async def ai_reflection(
    payload: DialogueRequest,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Run one turn of the guided reflection conversation.

    Upstream failures are not surfaced as errors: the reply then carries
    ``fallback: true`` and the next scripted prompt.
    """
    reply = await container.dialogue_service.respond(payload.messages)
    return {
        "success": True,
        "message": reply.message,
        "isComplete": reply.is_complete,
        "fallback": reply.fallback,
    }
