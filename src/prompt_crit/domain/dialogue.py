"""Models for the guided reflection dialogue."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

MAX_TURNS = 50
MAX_TURN_LENGTH = 2000


class TranscriptTurn(BaseModel):
    """Single turn of a reflection conversation.

    Accepts ``role``/``content`` as well as ``speaker``/``text`` keys.
    Text is trimmed before its length is checked.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    speaker: Literal["user", "ai", "assistant"] = Field(
        validation_alias=AliasChoices("speaker", "role")
    )
    text: str = Field(
        min_length=1,
        max_length=MAX_TURN_LENGTH,
        validation_alias=AliasChoices("text", "content"),
    )

    @property
    def is_user(self) -> bool:
        return self.speaker == "user"


class DialogueReply(BaseModel):
    """Reply returned for one dialogue turn."""

    message: str
    is_complete: bool = False
    fallback: bool = False
