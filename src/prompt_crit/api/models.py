"""Pydantic models for request payloads."""

from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, StrictBool


class SignupRequest(BaseModel):
    """Account registration payload."""

    email: str
    password: str
    name: str
    role: str


class SigninRequest(BaseModel):
    """Password sign-in payload."""

    email: str
    password: str


class CreateSessionRequest(BaseModel):
    """New session payload."""

    name: str


class RosterRequest(BaseModel):
    """Full roster replacement payload."""

    roster: list[dict[str, object]] = Field(
        validation_alias=AliasChoices("roster", "students")
    )


class ReopenRequest(BaseModel):
    """Reopen payload; the phase defaults to critique."""

    phase: str | None = None


class ReflectionRequest(BaseModel):
    """Reflection upsert payload."""

    responses: dict[str, object] | None = None
    screenshots: list[object] | None = None
    completed: StrictBool = False


class FeedbackRequest(BaseModel):
    """Peer feedback payload."""

    recipient_email: str = Field(
        validation_alias=AliasChoices("recipientEmail", "toStudent")
    )
    critique: str | None = Field(
        default="", validation_alias=AliasChoices("critique", "critiques")
    )
    questions: str | None = ""


class DialogueRequest(BaseModel):
    """One guided-reflection turn."""

    messages: list[object] = Field(
        validation_alias=AliasChoices("transcript", "messages")
    )
    session_id: UUID | None = Field(
        default=None, validation_alias=AliasChoices("sessionId", "session_id")
    )
