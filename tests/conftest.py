"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from prompt_crit.config import Settings
from prompt_crit.containers import AppContainer, build_services
from prompt_crit.domain.errors import UpstreamUnavailable
from prompt_crit.domain.models import Identity, Role
from prompt_crit.services.dialogue import DialogueClient, ReflectionDialogueService
from prompt_crit.services.identity import IdentityProvider, IdentityService
from prompt_crit.services.screenshots import ScreenshotService, ScreenshotStorage
from prompt_crit.services.store import InMemoryRecordStore

OWNER_TOKEN = "owner-token"
ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"
CAROL_TOKEN = "carol-token"


def organizer(user_id: str = "owner-1", email: str = "owner@x.com") -> Identity:
    return Identity(id=user_id, email=email, email_verified=True, role=Role.ORGANIZER)


def participant(email: str, user_id: str | None = None) -> Identity:
    return Identity(
        id=user_id or f"user-{email}",
        email=email,
        email_verified=True,
        role=Role.PARTICIPANT,
    )


ALICE = participant("a@x.com")
BOB = participant("b@x.com")
CAROL = participant("c@x.com")
DEMO_ROSTER = [
    {"email": "a@x.com", "displayName": "Alice"},
    {"email": "b@x.com", "displayName": "Bob"},
]


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Identity provider backed by a token map."""

    identities: dict[str, Identity] = field(default_factory=dict)
    passwords: dict[str, str] = field(default_factory=dict)
    created: list[tuple[str, str, Role]] = field(default_factory=list)

    def get_user(self, access_token: str) -> Identity | None:
        return self.identities.get(access_token)

    def create_user(
        self, email: str, password: str, display_name: str, role: Role
    ) -> str:
        user_id = f"user-{len(self.created) + 1}"
        self.created.append((email, display_name, role))
        self.passwords[email] = password
        self.identities[f"token-{email}"] = Identity(
            id=user_id, email=email, email_verified=True
        )
        return user_id

    def sign_in(self, email: str, password: str) -> str | None:
        if self.passwords.get(email) != password:
            return None
        return f"token-{email}"


@dataclass
class FakeDialogueClient(DialogueClient):
    """Dialogue client returning a canned reply or failing."""

    text: str = "Tell me more about what you built."
    fail: bool = False
    calls: list[dict[str, object]] = field(default_factory=list)

    async def reply(
        self,
        *,
        model: str,
        instructions: str,
        messages: list[dict[str, str]],
        max_output_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "instructions": instructions,
                "messages": messages,
                "max_output_tokens": max_output_tokens,
            }
        )
        if self.fail:
            raise UpstreamUnavailable("connection reset")
        return self.text


@dataclass
class FakeScreenshotStorage(ScreenshotStorage):
    """Screenshot storage that keeps uploads in memory."""

    objects: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    sign_fails: bool = False

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        self.objects[path] = (data, content_type)

    def signed_url(self, path: str, expires_in: int) -> str | None:
        if self.sign_fails:
            raise UpstreamUnavailable("Failed to sign file URL")
        return f"https://storage.test/{path}?expires={expires_in}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider(
        identities={
            OWNER_TOKEN: organizer(),
            ALICE_TOKEN: ALICE,
            BOB_TOKEN: BOB,
            CAROL_TOKEN: CAROL,
        }
    )


@pytest.fixture
def dialogue_client() -> FakeDialogueClient:
    return FakeDialogueClient()


@pytest.fixture
def container(
    settings: Settings,
    identity_provider: FakeIdentityProvider,
    dialogue_client: FakeDialogueClient,
) -> AppContainer:
    store = InMemoryRecordStore()
    session_service, reflection_service, feedback_service, progress_service = (
        build_services(settings, store)
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=store,
        identity_service=IdentityService(provider=identity_provider, store=store),
        session_service=session_service,
        reflection_service=reflection_service,
        feedback_service=feedback_service,
        progress_service=progress_service,
        screenshot_service=ScreenshotService(
            storage=FakeScreenshotStorage(), sessions=session_service
        ),
        dialogue_service=ReflectionDialogueService(
            client=dialogue_client,
            model=settings.openai_model,
            max_output_tokens=settings.openai_max_output_tokens,
        ),
        close_resources=close_resources,
    )
