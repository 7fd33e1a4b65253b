"""Caller identity resolution and user registration."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol

from prompt_crit.domain.errors import InvalidArgument, Unauthenticated
from prompt_crit.domain.models import Identity, Role, UserRecord
from prompt_crit.services.store import RecordStore, user_key
from prompt_crit.services.validation import (
    normalize_email,
    require_length,
    sanitize_text,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128
MAX_DISPLAY_NAME_LENGTH = 100

_ROLE_ALIASES = {"student": Role.PARTICIPANT}


class IdentityProvider(Protocol):
    """Interface for the upstream identity provider."""

    def get_user(self, access_token: str) -> Identity | None:
        """Return the identity behind an access token, or None if rejected."""

    def create_user(
        self, email: str, password: str, display_name: str, role: Role
    ) -> str:
        """Create a confirmed account and return its id."""

    def sign_in(self, email: str, password: str) -> str | None:
        """Return an access token for valid credentials, or None."""


def parse_role(value: object) -> Role | None:
    """Parse a declared role, accepting legacy aliases."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in _ROLE_ALIASES:
        return _ROLE_ALIASES[lowered]
    try:
        return Role(lowered)
    except ValueError:
        return None


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer`` header value."""
    if not authorization:
        raise Unauthenticated("Missing authorization token")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise Unauthenticated("Malformed authorization header")
    return token


@dataclass
class IdentityService:
    """Application service for identities and user accounts."""

    provider: IdentityProvider
    store: RecordStore

    def resolve(self, authorization: str | None) -> Identity:
        """Resolve an inbound credential to the caller identity."""
        token = parse_bearer(authorization)
        identity = self.provider.get_user(token)
        if identity is None or not identity.id or not identity.email:
            raise Unauthenticated("Unauthorized")
        identity = replace(identity, email=identity.email.lower())
        if identity.role is None:
            user = self.get_user(identity.email)
            if user is not None:
                identity = replace(identity, role=user.role)
        return identity

    def get_user(self, email: str) -> UserRecord | None:
        """Return the stored user record for an email, if present."""
        raw = self.store.get(user_key(email))
        if raw is None:
            return None
        return _user_from_record(raw)

    def register(
        self, email: object, password: object, display_name: object, role: object
    ) -> UserRecord:
        """Create a provider account and store the user record."""
        normalized = normalize_email(email)
        if not isinstance(password, str) or not (
            MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH
        ):
            raise InvalidArgument(
                f"Password must be between {MIN_PASSWORD_LENGTH} and "
                f"{MAX_PASSWORD_LENGTH} characters"
            )
        name = sanitize_text(
            require_length(display_name, "Name", 1, MAX_DISPLAY_NAME_LENGTH)
        )
        parsed_role = parse_role(role)
        if parsed_role is None:
            raise InvalidArgument('Role must be "organizer" or "participant"')
        if self.store.get(user_key(normalized)) is not None:
            raise InvalidArgument("User already exists")

        user_id = self.provider.create_user(normalized, password, name, parsed_role)
        user = UserRecord(
            id=user_id, email=normalized, display_name=name, role=parsed_role
        )
        self.store.set(user_key(normalized), _user_to_record(user))
        logger.info("Registered user", extra={"user_id": user_id})
        return user

    def sign_in(self, email: object, password: object) -> tuple[str, UserRecord | None]:
        """Exchange credentials for an access token."""
        normalized = normalize_email(email)
        if not isinstance(password, str) or not password:
            raise Unauthenticated("Invalid credentials")
        token = self.provider.sign_in(normalized, password)
        if token is None:
            raise Unauthenticated("Invalid credentials")
        return token, self.get_user(normalized)


def _user_to_record(user: UserRecord) -> dict[str, object]:
    return {
        "userId": user.id,
        "email": user.email,
        "name": user.display_name,
        "role": user.role.value,
    }


def _user_from_record(raw: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=str(raw.get("userId", "")),
        email=str(raw.get("email", "")),
        display_name=str(raw.get("name", "")),
        role=parse_role(raw.get("role")) or Role.PARTICIPANT,
    )
