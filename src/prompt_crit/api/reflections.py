"""Reflection, peer project and screenshot endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile

from prompt_crit.api.auth import current_identity, get_container
from prompt_crit.api.models import ReflectionRequest
from prompt_crit.containers import AppContainer
from prompt_crit.domain.models import Identity
from prompt_crit.domain.reflections import PeerProject
from prompt_crit.services.reflections import reflection_to_record
from prompt_crit.services.screenshots import MAX_FILE_SIZE

router = APIRouter(tags=["reflections"])


@router.post("/reflection/{session_id}")
async def save_reflection(
    session_id: UUID,
    payload: ReflectionRequest,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Upsert the caller's reflection."""
    reflection = container.reflection_service.save(
        session_id,
        caller,
        responses=payload.responses,
        screenshots=payload.screenshots,
        completed=payload.completed,
    )
    return {"success": True, "reflection": reflection_to_record(reflection)}


@router.get("/reflection/{session_id}/{email}")
async def get_reflection(
    session_id: UUID,
    email: str,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return a participant's reflection, or null if none is saved."""
    reflection = container.reflection_service.get(session_id, email, caller)
    return {"reflection": reflection_to_record(reflection) if reflection else None}


@router.get("/projects/{session_id}")
async def list_projects(
    session_id: UUID,
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return other participants' completed reflections."""
    projects = container.reflection_service.list_projects(session_id, caller)
    return {"projects": [serialize_project(project) for project in projects]}


@router.post("/upload-screenshot")
async def upload_screenshot(
    file: UploadFile = File(...),
    session_id: UUID = Form(..., alias="sessionId"),
    caller: Identity = Depends(current_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Upload a screenshot for the caller's reflection."""
    data = await file.read(MAX_FILE_SIZE + 1)
    uploaded = container.screenshot_service.upload(
        session_id, caller, file.filename, file.content_type, data
    )
    return {"success": True, "url": uploaded.url, "path": uploaded.path}


def serialize_project(project: PeerProject) -> dict[str, object]:
    return {
        "email": project.email,
        "displayName": project.display_name,
        "summary": project.summary,
        "screenshots": project.screenshots,
        "responses": project.responses,
    }
