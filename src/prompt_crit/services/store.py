"""Key-value record store abstractions."""

import copy
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

SESSION_PREFIX = "session:"


class RecordStore(Protocol):
    """Key-value persistence with point lookups and prefix scans."""

    def get(self, key: str) -> dict[str, object] | None:
        """Return the value stored under a key, if present."""

    def set(self, key: str, value: dict[str, object]) -> None:
        """Store a value under a key, replacing any previous value."""

    def set_if_version(
        self, key: str, value: dict[str, object], expected_version: int
    ) -> bool:
        """Replace a value only if its stored ``version`` matches.

        Returns False when the stored record is missing or has moved on.
        """

    def get_by_prefix(self, prefix: str) -> list[dict[str, object]]:
        """Return every value whose key starts with the prefix."""


def user_key(email: str) -> str:
    return f"user:{email.lower()}"


def session_key(session_id: UUID) -> str:
    return f"{SESSION_PREFIX}{session_id}"


def reflection_prefix(session_id: UUID) -> str:
    return f"reflection:{session_id}:"


def reflection_key(session_id: UUID, email: str) -> str:
    return f"{reflection_prefix(session_id)}{email.lower()}"


def feedback_prefix(session_id: UUID) -> str:
    return f"feedback:{session_id}:"


def feedback_key(session_id: UUID, author_email: str, recipient_email: str) -> str:
    return (
        f"{feedback_prefix(session_id)}{author_email.lower()}:{recipient_email.lower()}"
    )


@dataclass
class InMemoryRecordStore(RecordStore):
    """In-process store for local runs and tests."""

    _entries: dict[str, dict[str, object]]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, key: str) -> dict[str, object] | None:
        """Return a copy of the stored value."""
        value = self._entries.get(key)
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: dict[str, object]) -> None:
        """Store a copy of the value."""
        self._entries[key] = copy.deepcopy(value)

    def set_if_version(
        self, key: str, value: dict[str, object], expected_version: int
    ) -> bool:
        """Compare the stored version and swap in the new value."""
        current = self._entries.get(key)
        if current is None or current.get("version", 1) != expected_version:
            return False
        self._entries[key] = copy.deepcopy(value)
        return True

    def get_by_prefix(self, prefix: str) -> list[dict[str, object]]:
        """Return copies of matching values ordered by key."""
        return [
            copy.deepcopy(value)
            for key, value in sorted(self._entries.items())
            if key.startswith(prefix)
        ]

    def keys(self) -> list[str]:
        """Return all stored keys."""
        return sorted(self._entries)
