"""OpenAI Responses API client for the reflection dialogue."""

from dataclasses import dataclass

import httpx
from openai import APIError, AsyncOpenAI

from prompt_crit.domain.errors import UpstreamUnavailable
from prompt_crit.services.dialogue import DialogueClient


@dataclass
class OpenAIDialogueClient(DialogueClient):
    """Dialogue client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, timeout_seconds: float) -> "OpenAIDialogueClient":
        """Create a client with a bounded request timeout and no retries."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                timeout=httpx.Timeout(timeout_seconds, connect=5.0),
                max_retries=0,
            )
        )

    async def reply(
        self,
        *,
        model: str,
        instructions: str,
        messages: list[dict[str, str]],
        max_output_tokens: int,
    ) -> str:
        """Call OpenAI Responses API and return the reply text."""
        try:
            response = await self.client.responses.create(
                model=model,
                instructions=instructions,
                input=messages,
                max_output_tokens=max_output_tokens,
                store=False,
            )
        except APIError as exc:
            raise UpstreamUnavailable(f"OpenAI request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise UpstreamUnavailable("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
