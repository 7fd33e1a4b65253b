"""Supabase Auth identity provider."""

import logging
from dataclasses import dataclass

from supabase import AuthError, Client

from prompt_crit.domain.errors import InvalidArgument
from prompt_crit.domain.models import Identity, Role
from prompt_crit.services.identity import IdentityProvider, parse_role

logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase Auth.

    ``sign_in_client`` is kept separate from the service client because a
    password sign-in stores the user session on the client it runs on.
    """

    client: Client
    sign_in_client: Client

    def get_user(self, access_token: str) -> Identity | None:
        """Verify an access token and return the caller identity."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError as exc:
            logger.info("Rejected access token", extra={"reason": exc.message})
            return None
        user = response.user if response else None
        if user is None or not user.email:
            return None
        metadata = user.user_metadata or {}
        return Identity(
            id=user.id,
            email=user.email.lower(),
            email_verified=user.email_confirmed_at is not None,
            role=parse_role(metadata.get("role")),
        )

    def create_user(
        self, email: str, password: str, display_name: str, role: Role
    ) -> str:
        """Create a pre-confirmed account."""
        try:
            response = self.client.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "user_metadata": {"name": display_name, "role": role.value},
                    "email_confirm": True,
                }
            )
        except AuthError as exc:
            logger.info("Supabase rejected signup", extra={"reason": exc.message})
            raise InvalidArgument(exc.message) from exc
        return response.user.id

    def sign_in(self, email: str, password: str) -> str | None:
        """Exchange email and password for an access token."""
        try:
            response = self.sign_in_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            logger.info("Supabase rejected signin", extra={"reason": exc.message})
            return None
        if response.session is None:
            return None
        return response.session.access_token
