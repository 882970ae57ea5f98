"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from macromate.adapters.file_storage import FileKeyValueStorage
from macromate.adapters.supabase_tracker_gateway import SupabaseTrackerGateway
from macromate.app_logging import configure_logging
from macromate.config import Settings, resolve_timezone
from macromate.services.backends import make_backend_factory
from macromate.services.local_store import GuestStorage
from macromate.services.migration import MigrationService
from macromate.services.sessions import InMemorySessionProvider, SessionFlow
from macromate.services.tracker import FoodTracker


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    guest_storage: GuestStorage
    gateway: SupabaseTrackerGateway | None
    tracker: FoodTracker
    migration_service: MigrationService | None
    session_provider: InMemorySessionProvider
    session_flow: SessionFlow
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    Without Supabase credentials only guest sessions can store data.
    """
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level.upper())
    guest_storage = GuestStorage.create(
        FileKeyValueStorage(resolved_settings.local_storage_dir)
    )
    gateway: SupabaseTrackerGateway | None = None
    if resolved_settings.remote_enabled:
        supabase_client = create_client(
            str(resolved_settings.supabase_url),
            str(resolved_settings.supabase_service_key),
        )
        gateway = SupabaseTrackerGateway(supabase_client)
    tracker = FoodTracker(
        backend_factory=make_backend_factory(guest_storage, gateway),
        timezone=resolve_timezone(resolved_settings.timezone),
        load_timeout_seconds=resolved_settings.load_timeout_seconds,
    )
    migration_service = (
        MigrationService(storage=guest_storage, gateway=gateway) if gateway else None
    )
    session_provider = InMemorySessionProvider()
    session_flow = SessionFlow(
        provider=session_provider,
        tracker=tracker,
        migration=migration_service,
    )

    async def close_resources() -> None:
        await session_flow.close()

    return AppContainer(
        settings=resolved_settings,
        guest_storage=guest_storage,
        gateway=gateway,
        tracker=tracker,
        migration_service=migration_service,
        session_provider=session_provider,
        session_flow=session_flow,
        close_resources=close_resources,
    )
