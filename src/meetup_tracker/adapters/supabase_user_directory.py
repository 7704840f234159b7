"""Supabase-backed user directory."""

from collections.abc import Iterable
from dataclasses import dataclass

from supabase import Client

from meetup_tracker.adapters.supabase_meetup_repository import translate_errors
from meetup_tracker.services.meetups import UserDirectory


@dataclass
class SupabaseUserDirectory(UserDirectory):
    """Supabase implementation for username lookups."""

    client: Client

    def get_usernames(self, user_ids: Iterable[int]) -> dict[int, str]:
        """Return usernames keyed by user id."""
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        with translate_errors("load usernames"):
            response = (
                self.client.table("users")
                .select("id, username")
                .in_("id", ids)
                .execute()
            )
        return {row["id"]: row["username"] for row in response.data or []}
