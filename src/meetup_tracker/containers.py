"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from meetup_tracker.adapters.supabase_admin_repository import SupabaseAdminRepository
from meetup_tracker.adapters.supabase_meetup_repository import (
    SupabaseMeetupRepository,
)
from meetup_tracker.adapters.supabase_user_directory import SupabaseUserDirectory
from meetup_tracker.client.api_client import HttpxMeetupApiClient
from meetup_tracker.client.controller import MeetupClient
from meetup_tracker.client.poller import MeetupStatusPoller
from meetup_tracker.client.state_store import FileViewStateStore
from meetup_tracker.config import ClientSettings, Settings
from meetup_tracker.services.admin import AdminService
from meetup_tracker.services.meetups import MeetupService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    meetup_service: MeetupService
    admin_service: AdminService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_directory = SupabaseUserDirectory(supabase_client)
    meetup_service = MeetupService(
        repository=SupabaseMeetupRepository(supabase_client),
        user_directory=user_directory,
        pending_ttl=resolved_settings.pending_session_ttl,
    )
    admin_service = AdminService(
        admin_repository=SupabaseAdminRepository(supabase_client),
        meetup_service=meetup_service,
        user_directory=user_directory,
    )
    return AppContainer(
        settings=resolved_settings,
        meetup_service=meetup_service,
        admin_service=admin_service,
    )


def build_client(settings: ClientSettings | None = None) -> MeetupClient:
    """Create a polling client for the signed-in user."""
    resolved_settings = settings or ClientSettings()
    api = HttpxMeetupApiClient.create(
        resolved_settings.api_base_url, resolved_settings.user_id
    )
    return MeetupClient(
        api=api,
        store=FileViewStateStore(resolved_settings.state_path),
        user_id=resolved_settings.user_id,
        poller=MeetupStatusPoller(
            api, interval_seconds=resolved_settings.poll_interval_seconds
        ),
        max_state_age=resolved_settings.state_max_age,
    )
