"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prompt_crit.api.auth import router as auth_router
from prompt_crit.api.dialogue import router as dialogue_router
from prompt_crit.api.feedback import router as feedback_router
from prompt_crit.api.reflections import router as reflections_router
from prompt_crit.api.sessions import router as sessions_router
from prompt_crit.app_logging import configure_logging
from prompt_crit.config import parse_allowed_origins
from prompt_crit.containers import AppContainer
from prompt_crit.domain.errors import InvalidArgument, PromptCritError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level, container.settings.environment)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.allowed_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(auth_router)
    app.include_router(sessions_router)
    app.include_router(reflections_router)
    app.include_router(feedback_router)
    app.include_router(dialogue_router)

    @app.exception_handler(PromptCritError)
    async def handle_domain_error(
        request: Request, exc: PromptCritError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed upstream",
                extra={"path": request.url.path, "kind": exc.kind},
            )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg") if errors else None
        return _error_response(InvalidArgument(str(message or "Invalid request")))

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def _error_response(exc: PromptCritError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"kind": exc.kind, "message": exc.message}},
    )
