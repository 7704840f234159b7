"""Supabase admin data access."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meetup_tracker.adapters.supabase_meetup_repository import (
    COLUMNS,
    TABLE,
    row_to_session,
    translate_errors,
)
from meetup_tracker.domain.meetups import MeetupSession, MeetupStatus
from meetup_tracker.services.admin import AdminRepository


@dataclass
class SupabaseAdminRepository(AdminRepository):
    """Supabase implementation for admin queries."""

    client: Client

    def count_by_status(self) -> dict[str, int]:
        """Return session counts keyed by status, counted server side."""
        counts: dict[str, int] = {}
        for status in MeetupStatus:
            with translate_errors(f"count {status} meetup sessions"):
                response = (
                    self.client.table(TABLE)
                    .select("id", count="exact", head=True)
                    .eq("status", status.value)
                    .execute()
                )
            counts[status.value] = response.count or 0
        return counts

    def count_created_since(self, since: datetime) -> int:
        """Return how many sessions were created since the given time."""
        with translate_errors("count recent meetup sessions"):
            response = (
                self.client.table(TABLE)
                .select("id", count="exact", head=True)
                .gte("created_at", since.isoformat())
                .execute()
            )
        return response.count or 0

    def list_recent_sessions(self, limit: int) -> list[MeetupSession]:
        """Return the most recently created sessions."""
        with translate_errors("list recent meetup sessions"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        return [row_to_session(row) for row in response.data or []]
