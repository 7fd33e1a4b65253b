"""Guided reflection dialogue with a scripted fallback."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from prompt_crit.domain.dialogue import MAX_TURNS, DialogueReply, TranscriptTurn
from prompt_crit.domain.errors import InvalidArgument, UpstreamUnavailable
from prompt_crit.services.validation import sanitize_text

logger = logging.getLogger(__name__)

COMPLETION_SENTINEL = "[REFLECTION_COMPLETE]"
MIN_ANSWER_LENGTH = 50

REFLECTION_INSTRUCTIONS = (
    "You are a thoughtful facilitator helping a student reflect on a creative "
    "project they just built. Be warm, curious and brief (two or three sentences "
    "per reply). Cover these topics in order: 1) what they built and why, "
    "2) the emotions they want people to feel, 3) insights and surprises from "
    "building it, 4) what they learned, 5) questions they still have. When an "
    "answer is short, ask them to elaborate. Acknowledge what they share before "
    "moving on. Once all five topics are covered, summarize the conversation and "
    f"end your reply with {COMPLETION_SENTINEL}. Stay in this role throughout."
)


@dataclass(frozen=True)
class ScriptedQuestion:
    """A fixed prompt with one follow-up for short answers."""

    question: str
    follow_up: str


SCRIPTED_QUESTIONS: tuple[ScriptedQuestion, ...] = (
    ScriptedQuestion(
        "Let's start! What is your name and what did you build for this project?",
        "Tell me more about what motivated you to build this.",
    ),
    ScriptedQuestion(
        "What emotions do you hope people feel when they interact with your project?",
        "Why are those emotions important to you?",
    ),
    ScriptedQuestion(
        "What insights did you gather while building this? What surprised you?",
        "How did those insights change your approach?",
    ),
    ScriptedQuestion(
        "What did you learn through this process? About the subject? "
        "About yourself?",
        "How might you apply these learnings in the future?",
    ),
    ScriptedQuestion(
        "What questions do you still have? What would you explore next if you "
        "had more time?",
        "What's holding you back from exploring those questions now?",
    ),
)

SCRIPTED_CLOSING = (
    "Thank you for this thoughtful reflection! Now, let's create a visual summary "
    "of your project. Please upload 3 screenshots that best represent your work."
)

_TRANSCRIPT = TypeAdapter(list[TranscriptTurn])


class DialogueClient(Protocol):
    """Interface for the conversational model."""

    async def reply(
        self,
        *,
        model: str,
        instructions: str,
        messages: list[dict[str, str]],
        max_output_tokens: int,
    ) -> str:
        """Return the assistant reply text.

        Raises UpstreamUnavailable when the service cannot answer.
        """


def parse_transcript(raw: object) -> list[TranscriptTurn]:
    """Validate a raw transcript payload."""
    try:
        turns = _TRANSCRIPT.validate_python(raw)
    except ValidationError as exc:
        raise InvalidArgument(
            "Each message must have a speaker (user or ai) and 1-2000 characters "
            "of text"
        ) from exc
    if not turns:
        raise InvalidArgument("Transcript must contain at least one turn")
    if len(turns) > MAX_TURNS:
        raise InvalidArgument(f"Too many messages. Maximum is {MAX_TURNS}")
    return turns


def scripted_reply(transcript: list[TranscriptTurn]) -> DialogueReply:
    """Return the next scripted prompt reconstructed from the transcript."""
    index = 0
    follow_up_asked = False
    message = SCRIPTED_QUESTIONS[0].question
    complete = False
    for turn in transcript:
        if not turn.is_user or complete:
            continue
        answer = sanitize_text(turn.text)
        if not follow_up_asked and len(answer) < MIN_ANSWER_LENGTH:
            message = SCRIPTED_QUESTIONS[index].follow_up
            follow_up_asked = True
        elif index < len(SCRIPTED_QUESTIONS) - 1:
            index += 1
            follow_up_asked = False
            message = f"Thank you for sharing. {SCRIPTED_QUESTIONS[index].question}"
        else:
            message = SCRIPTED_CLOSING
            complete = True
    return DialogueReply(message=message, is_complete=complete, fallback=True)


@dataclass
class ReflectionDialogueService:
    """Drives one turn of the guided reflection conversation."""

    client: DialogueClient | None
    model: str
    max_output_tokens: int = 300

    async def respond(self, transcript: object) -> DialogueReply:
        """Forward the transcript and interpret the model reply."""
        turns = parse_transcript(transcript)
        if self.client is None:
            logger.warning("Dialogue service not configured; using scripted prompts")
            return scripted_reply(turns)

        messages = [
            {
                "role": "user" if turn.is_user else "assistant",
                "content": sanitize_text(turn.text),
            }
            for turn in turns
        ]
        try:
            text = await self.client.reply(
                model=self.model,
                instructions=REFLECTION_INSTRUCTIONS,
                messages=messages,
                max_output_tokens=self.max_output_tokens,
            )
        except UpstreamUnavailable as exc:
            logger.warning(
                "Dialogue upstream failed; using scripted prompts",
                extra={"reason": exc.message, "turns": len(turns)},
            )
            return scripted_reply(turns)

        is_complete = COMPLETION_SENTINEL in text
        cleaned = text.replace(COMPLETION_SENTINEL, "").strip()
        if not cleaned:
            logger.warning("Dialogue upstream returned an empty reply")
            return scripted_reply(turns)
        return DialogueReply(message=cleaned, is_complete=is_complete)
