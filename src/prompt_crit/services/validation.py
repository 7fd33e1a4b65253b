"""Input validation helpers shared by services."""

import re

from prompt_crit.domain.errors import InvalidArgument

MAX_EMAIL_LENGTH = 254
MAX_TEXT_LENGTH = 10000

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: object) -> bool:
    """Return True for a syntactically valid email address."""
    return (
        isinstance(value, str)
        and len(value) <= MAX_EMAIL_LENGTH
        and _EMAIL_PATTERN.match(value) is not None
    )


def normalize_email(value: object, label: str = "email") -> str:
    """Validate an email and return it trimmed and lowercased."""
    if not isinstance(value, str) or not is_valid_email(value.strip()):
        raise InvalidArgument(f"Invalid {label} format")
    return value.strip().lower()


def sanitize_text(value: str, max_length: int = MAX_TEXT_LENGTH) -> str:
    """Trim whitespace and cap the length of free text."""
    return value.strip()[:max_length]


def require_length(
    value: object, label: str, min_length: int, max_length: int
) -> str:
    """Return the value when its trimmed length is within bounds."""
    if not isinstance(value, str):
        raise InvalidArgument(f"{label} must be a string")
    if len(value.strip()) < min_length or len(value) > max_length:
        raise InvalidArgument(
            f"{label} must be between {min_length} and {max_length} characters"
        )
    return value
