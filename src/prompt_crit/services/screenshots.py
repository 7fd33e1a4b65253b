"""Screenshot uploads for participant reflections."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from prompt_crit.domain.errors import Forbidden, InvalidArgument, UpstreamUnavailable
from prompt_crit.domain.models import Identity
from prompt_crit.services.sessions import SessionService

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_FILENAME_LENGTH = 100
ALLOWED_CONTENT_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp"}
)
SIGNED_URL_TTL_SECONDS = 60 * 60 * 24 * 365

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


class ScreenshotStorage(Protocol):
    """Interface for binary file storage."""

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store bytes at a path; raises UpstreamUnavailable on failure."""

    def signed_url(self, path: str, expires_in: int) -> str | None:
        """Return a time-limited URL; raises UpstreamUnavailable on failure."""


@dataclass(frozen=True)
class UploadedScreenshot:
    """Location of an uploaded screenshot."""

    path: str
    url: str | None


@dataclass
class ScreenshotService:
    """Validates and stores screenshots for enrolled participants."""

    storage: ScreenshotStorage
    sessions: SessionService

    def upload(
        self,
        session_id: UUID,
        caller: Identity,
        filename: str | None,
        content_type: str | None,
        data: bytes,
    ) -> UploadedScreenshot:
        """Store a screenshot under the caller's folder for the session."""
        if len(data) > MAX_FILE_SIZE:
            raise InvalidArgument("File too large. Maximum size is 10MB.")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidArgument(
                "Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed."
            )
        session = self.sessions.load(session_id)
        if not session.is_enrolled(caller.email):
            raise Forbidden("Forbidden - not enrolled in session")

        path = (
            f"{session_id}/{caller.email.lower()}/{uuid4()}-"
            f"{sanitize_filename(filename or 'screenshot')}"
        )
        self.storage.upload(path, data, content_type)
        logger.info("Uploaded screenshot", extra={"session_id": str(session_id)})
        try:
            url = self.storage.signed_url(path, SIGNED_URL_TTL_SECONDS)
        except UpstreamUnavailable:
            logger.warning("Screenshot stored without signed URL", extra={"path": path})
            url = None
        return UploadedScreenshot(path=path, url=url)


def sanitize_filename(filename: str) -> str:
    """Replace path-unsafe characters and cap the length."""
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)[:MAX_FILENAME_LENGTH]
