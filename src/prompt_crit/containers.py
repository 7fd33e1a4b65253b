"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from prompt_crit.adapters.openai_dialogue_client import OpenAIDialogueClient
from prompt_crit.adapters.supabase_identity_provider import SupabaseIdentityProvider
from prompt_crit.adapters.supabase_record_store import SupabaseRecordStore
from prompt_crit.adapters.supabase_screenshot_storage import (
    SupabaseScreenshotStorage,
)
from prompt_crit.config import Settings
from prompt_crit.services.dialogue import ReflectionDialogueService
from prompt_crit.services.feedback import FeedbackService
from prompt_crit.services.identity import IdentityService
from prompt_crit.services.progress import ProgressService
from prompt_crit.services.reflections import PeerVisibility, ReflectionService
from prompt_crit.services.screenshots import ScreenshotService
from prompt_crit.services.sessions import SessionService
from prompt_crit.services.store import RecordStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: RecordStore
    identity_service: IdentityService
    session_service: SessionService
    reflection_service: ReflectionService
    feedback_service: FeedbackService
    progress_service: ProgressService
    screenshot_service: ScreenshotService
    dialogue_service: ReflectionDialogueService
    close_resources: Callable[[], Awaitable[None]]


def build_services(
    settings: Settings, store: RecordStore
) -> tuple[SessionService, ReflectionService, FeedbackService, ProgressService]:
    """Wire the core services over a record store."""
    session_service = SessionService(
        store=store,
        require_roster_to_start=settings.require_roster_to_start,
        lock_roster_after_start=settings.lock_roster_after_start,
    )
    reflection_service = ReflectionService(
        store=store,
        sessions=session_service,
        peer_visibility=PeerVisibility(settings.peer_reflection_visibility),
    )
    feedback_service = FeedbackService(store=store, sessions=session_service)
    progress_service = ProgressService(
        sessions=session_service,
        reflections=reflection_service,
        feedback=feedback_service,
    )
    return session_service, reflection_service, feedback_service, progress_service


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    sign_in_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_anon_key or resolved_settings.supabase_service_key,
    )
    store = SupabaseRecordStore(supabase_client, table=resolved_settings.kv_table)
    identity_service = IdentityService(
        provider=SupabaseIdentityProvider(
            client=supabase_client, sign_in_client=sign_in_client
        ),
        store=store,
    )
    session_service, reflection_service, feedback_service, progress_service = (
        build_services(resolved_settings, store)
    )
    screenshot_service = ScreenshotService(
        storage=SupabaseScreenshotStorage(
            supabase_client, bucket=resolved_settings.screenshot_bucket
        ),
        sessions=session_service,
    )
    dialogue_client = (
        OpenAIDialogueClient.create(
            resolved_settings.openai_api_key,
            timeout_seconds=resolved_settings.dialogue_timeout_seconds,
        )
        if resolved_settings.openai_api_key
        else None
    )
    dialogue_service = ReflectionDialogueService(
        client=dialogue_client,
        model=resolved_settings.openai_model,
        max_output_tokens=resolved_settings.openai_max_output_tokens,
    )

    async def close_resources() -> None:
        if dialogue_client is not None:
            await dialogue_client.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        identity_service=identity_service,
        session_service=session_service,
        reflection_service=reflection_service,
        feedback_service=feedback_service,
        progress_service=progress_service,
        screenshot_service=screenshot_service,
        dialogue_service=dialogue_service,
        close_resources=close_resources,
    )
