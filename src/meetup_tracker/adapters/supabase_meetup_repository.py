"""Supabase-backed meetup session repository."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from meetup_tracker.domain.errors import InvalidRequest, StoreError
from meetup_tracker.domain.meetups import GeoPoint, MeetupSession, MeetupStatus, Party
from meetup_tracker.services.meetups import MeetupSessionRepository

TABLE = "meetup_sessions"
COLUMNS = (
    "id, requester_id, addressee_id, status, "
    "requester_confirmed, addressee_confirmed, "
    "requester_lat, requester_lon, addressee_lat, addressee_lon, "
    "proximity_successful, created_at, completed_at"
)
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Re-raise PostgREST and transport failures as StoreError."""
    try:
        yield
    except APIError as exc:
        raise StoreError(f"Failed to {action}: {exc.message}") from exc
    except httpx.HTTPError as exc:
        raise StoreError(f"Failed to {action}: {exc}") from exc


@dataclass
class SupabaseMeetupRepository(MeetupSessionRepository):
    """Supabase implementation for meetup sessions.

    Every write is a single conditional UPDATE returning the updated row, so
    concurrent confirmations from both parties never overwrite each other's
    columns and each caller sees its own post-write snapshot.
    """

    client: Client

    def create_session(self, requester_id: int, addressee_id: int) -> MeetupSession:
        """Insert a pending session row and return it."""
        try:
            response = (
                self.client.table(TABLE)
                .insert(
                    {
                        "requester_id": requester_id,
                        "addressee_id": addressee_id,
                        "status": MeetupStatus.PENDING.value,
                    }
                )
                .execute()
            )
        except APIError as exc:
            # Lost the race against the pair's partial unique index.
            if exc.code == _UNIQUE_VIOLATION:
                existing = self.find_pending_between(requester_id, addressee_id)
                if existing is not None:
                    return existing
            if exc.code == _FOREIGN_KEY_VIOLATION:
                raise InvalidRequest(f"Unknown user id {addressee_id}.") from exc
            raise StoreError(
                f"Failed to create meetup session: {exc.message}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Failed to create meetup session: {exc}") from exc
        if not response.data:
            raise StoreError("Failed to create meetup session")
        return row_to_session(response.data[0])

    def get_session(self, session_id: UUID) -> MeetupSession | None:
        """Return a session by id, if present."""
        with translate_errors("load meetup session"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .eq("id", str(session_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return row_to_session(response.data[0])

    def update_party_confirmation(
        self, session_id: UUID, party: Party, location: GeoPoint
    ) -> MeetupSession | None:
        """Confirm one party's columns while the session is still pending."""
        prefix = party.value
        with translate_errors("record meetup confirmation"):
            response = (
                self.client.table(TABLE)
                .update(
                    {
                        f"{prefix}_confirmed": True,
                        f"{prefix}_lat": location.latitude,
                        f"{prefix}_lon": location.longitude,
                    }
                )
                .eq("id", str(session_id))
                .eq("status", MeetupStatus.PENDING.value)
                .execute()
            )
        if not response.data:
            return None
        return row_to_session(response.data[0])

    def update_status(  # noqa: PLR0913
        self,
        session_id: UUID,
        status: MeetupStatus,
        expected: Iterable[MeetupStatus],
        proximity_successful: bool | None = None,
        completed_at: datetime | None = None,
    ) -> MeetupSession | None:
        """Compare-and-set the session status."""
        payload: dict[str, object] = {
            "status": status.value,
            "proximity_successful": proximity_successful,
        }
        if completed_at is not None:
            payload["completed_at"] = completed_at.isoformat()
        with translate_errors("update meetup status"):
            response = (
                self.client.table(TABLE)
                .update(payload)
                .eq("id", str(session_id))
                .in_("status", sorted(item.value for item in expected))
                .execute()
            )
        if not response.data:
            return None
        return row_to_session(response.data[0])

    def find_pending_between(self, user_a: int, user_b: int) -> MeetupSession | None:
        """Return the pending session for the unordered pair, if any."""
        with translate_errors("find pending meetup session"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .or_(
                    f"and(requester_id.eq.{user_a},addressee_id.eq.{user_b}),"
                    f"and(requester_id.eq.{user_b},addressee_id.eq.{user_a})"
                )
                .eq("status", MeetupStatus.PENDING.value)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return row_to_session(response.data[0])

    def find_pending_for_addressee(self, user_id: int) -> list[MeetupSession]:
        """Return pending sessions addressed to the user, newest first."""
        with translate_errors("list pending meetup requests"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .eq("addressee_id", user_id)
                .eq("status", MeetupStatus.PENDING.value)
                .order("created_at", desc=True)
                .execute()
            )
        return [row_to_session(row) for row in response.data or []]

    def find_pending_created_before(self, cutoff: datetime) -> list[MeetupSession]:
        """Return pending sessions created before the cutoff."""
        with translate_errors("list stale meetup sessions"):
            response = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .eq("status", MeetupStatus.PENDING.value)
                .lt("created_at", cutoff.isoformat())
                .execute()
            )
        return [row_to_session(row) for row in response.data or []]


def row_to_session(row: dict) -> MeetupSession:
    """Map a meetup_sessions row to the domain model."""
    completed_at = row.get("completed_at")
    return MeetupSession(
        id=UUID(row["id"]),
        requester_id=row["requester_id"],
        addressee_id=row["addressee_id"],
        status=MeetupStatus(row["status"]),
        requester_confirmed=bool(row.get("requester_confirmed")),
        addressee_confirmed=bool(row.get("addressee_confirmed")),
        requester_location=_point(row.get("requester_lat"), row.get("requester_lon")),
        addressee_location=_point(row.get("addressee_lat"), row.get("addressee_lon")),
        proximity_successful=row.get("proximity_successful"),
        created_at=datetime.fromisoformat(row["created_at"]),
        completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
    )


def _point(latitude: float | None, longitude: float | None) -> GeoPoint | None:
    if latitude is None or longitude is None:
        return None
    return GeoPoint(latitude=float(latitude), longitude=float(longitude))
