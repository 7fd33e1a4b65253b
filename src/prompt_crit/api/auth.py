"""Account endpoints and caller identity dependencies."""

from fastapi import APIRouter, Depends, Header, Request

from prompt_crit.api.models import SigninRequest, SignupRequest
from prompt_crit.containers import AppContainer
from prompt_crit.domain.models import Identity, UserRecord

router = APIRouter(tags=["auth"])


def get_container(request: Request) -> AppContainer:
    """Return the dependency container attached to the app."""
    return request.app.state.container


async def current_identity(
    authorization: str | None = Header(default=None),
    container: AppContainer = Depends(get_container),
) -> Identity:
    """Resolve the caller from the ``Authorization`` header."""
    return container.identity_service.resolve(authorization)


@router.post("/signup")
async def signup(
    payload: SignupRequest, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    """Register an organizer or participant account."""
    user = container.identity_service.register(
        payload.email, payload.password, payload.name, payload.role
    )
    return {"success": True, "user": serialize_user(user)}


@router.post("/signin")
async def signin(
    payload: SigninRequest, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    """Exchange credentials for an access token."""
    token, user = container.identity_service.sign_in(payload.email, payload.password)
    return {
        "success": True,
        "accessToken": token,
        "user": serialize_user(user) if user else None,
    }


def serialize_user(user: UserRecord) -> dict[str, object]:
    return {"email": user.email, "name": user.display_name, "role": user.role.value}
