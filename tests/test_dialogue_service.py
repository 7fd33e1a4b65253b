"""Tests for the guided reflection dialogue."""

import asyncio

import pytest

from prompt_crit.domain.dialogue import DialogueReply
from prompt_crit.domain.errors import InvalidArgument
from prompt_crit.services.dialogue import (
    COMPLETION_SENTINEL,
    REFLECTION_INSTRUCTIONS,
    SCRIPTED_CLOSING,
    SCRIPTED_QUESTIONS,
    ReflectionDialogueService,
    parse_transcript,
    scripted_reply,
)
from tests.conftest import FakeDialogueClient

LONG_ANSWER = "I built a garden planner that helps neighbours share seeds and tools."


def _respond(
    service: ReflectionDialogueService, transcript: object
) -> DialogueReply:
    return asyncio.run(service.respond(transcript))


def test_reply_forwarded_with_sanitized_transcript() -> None:
    client = FakeDialogueClient(text="What emotions do you hope people feel?")
    service = ReflectionDialogueService(client=client, model="gpt-4o-mini")

    reply = _respond(
        service,
        [
            {"speaker": "ai", "text": SCRIPTED_QUESTIONS[0].question},
            {"role": "user", "content": f"  {LONG_ANSWER}  "},
        ],
    )

    assert reply.message == "What emotions do you hope people feel?"
    assert reply.is_complete is False
    assert reply.fallback is False
    call = client.calls[0]
    assert call["instructions"] == REFLECTION_INSTRUCTIONS
    assert call["max_output_tokens"] == 300
    assert call["messages"] == [
        {"role": "assistant", "content": SCRIPTED_QUESTIONS[0].question},
        {"role": "user", "content": LONG_ANSWER},
    ]


def test_sentinel_sets_complete_and_is_stripped() -> None:
    client = FakeDialogueClient(text=f"Thanks for sharing! {COMPLETION_SENTINEL}")
    service = ReflectionDialogueService(client=client, model="gpt-4o-mini")

    reply = _respond(service, [{"speaker": "user", "text": LONG_ANSWER}])

    assert reply.is_complete is True
    assert reply.message == "Thanks for sharing!"
    assert COMPLETION_SENTINEL not in reply.message


def test_upstream_failure_degrades_to_scripted_prompt() -> None:
    service = ReflectionDialogueService(
        client=FakeDialogueClient(fail=True), model="gpt-4o-mini"
    )

    reply = _respond(service, [{"speaker": "user", "text": LONG_ANSWER}])

    assert reply.fallback is True
    assert reply.message.endswith(SCRIPTED_QUESTIONS[1].question)


def test_missing_client_uses_scripted_prompts() -> None:
    service = ReflectionDialogueService(client=None, model="gpt-4o-mini")

    reply = _respond(service, [{"speaker": "user", "text": "hi"}])

    assert reply.fallback is True
    assert reply.message == SCRIPTED_QUESTIONS[0].follow_up


def test_sentinel_only_reply_falls_back() -> None:
    service = ReflectionDialogueService(
        client=FakeDialogueClient(text=COMPLETION_SENTINEL), model="gpt-4o-mini"
    )

    reply = _respond(service, [{"speaker": "user", "text": LONG_ANSWER}])

    assert reply.fallback is True


def test_scripted_reply_asks_one_follow_up_then_advances() -> None:
    transcript = parse_transcript(
        [
            {"speaker": "user", "text": "short"},
            {"speaker": "ai", "text": SCRIPTED_QUESTIONS[0].follow_up},
            {"speaker": "user", "text": "still short"},
        ]
    )

    reply = scripted_reply(transcript)

    assert reply.message.endswith(SCRIPTED_QUESTIONS[1].question)
    assert reply.is_complete is False


def test_scripted_reply_closes_after_last_question() -> None:
    transcript = parse_transcript(
        [{"speaker": "user", "text": LONG_ANSWER} for _ in SCRIPTED_QUESTIONS]
    )

    reply = scripted_reply(transcript)

    assert reply.message == SCRIPTED_CLOSING
    assert reply.is_complete is True


@pytest.mark.parametrize(
    "transcript",
    [
        [],
        "not a list",
        [{"speaker": "moderator", "text": "hi"}],
        [{"speaker": "user", "text": ""}],
        [{"speaker": "user", "text": "   \n "}],
        [{"speaker": "user", "text": "x" * 2001}],
        [{"speaker": "user", "text": "hi"} for _ in range(51)],
    ],
)
def test_invalid_transcripts_rejected(transcript) -> None:
    service = ReflectionDialogueService(
        client=FakeDialogueClient(), model="gpt-4o-mini"
    )

    with pytest.raises(InvalidArgument):
        _respond(service, transcript)
