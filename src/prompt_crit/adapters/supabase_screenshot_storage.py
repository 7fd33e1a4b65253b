"""Supabase Storage bucket for screenshots."""

import logging
from dataclasses import dataclass

from supabase import Client

from prompt_crit.domain.errors import UpstreamUnavailable
from prompt_crit.services.screenshots import ScreenshotStorage

logger = logging.getLogger(__name__)


@dataclass
class SupabaseScreenshotStorage(ScreenshotStorage):
    """Stores screenshots in a private Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Upload bytes without overwriting existing objects."""
        try:
            self.client.storage.from_(self.bucket).upload(
                path, data, {"content-type": content_type, "upsert": "false"}
            )
        except Exception as exc:
            logger.exception("Storage upload failed", extra={"path": path})
            raise UpstreamUnavailable("Failed to upload file") from exc

    def signed_url(self, path: str, expires_in: int) -> str | None:
        """Create a signed URL for a stored object."""
        try:
            response = self.client.storage.from_(self.bucket).create_signed_url(
                path, expires_in
            )
        except Exception as exc:
            logger.exception("Signed URL creation failed", extra={"path": path})
            raise UpstreamUnavailable("Failed to sign file URL") from exc
        return response.get("signedURL") or response.get("signedUrl")
