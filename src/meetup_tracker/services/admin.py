"""Admin service for meetup session oversight."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID

from meetup_tracker.domain.meetups import GeoPoint, MeetupSession, MeetupStatus
from meetup_tracker.services.meetups import MeetupService, UserDirectory


class AdminRepository(Protocol):
    """Persistence interface for admin data."""

    def count_by_status(self) -> dict[str, int]:
        """Return session counts keyed by status."""

    def count_created_since(self, since: datetime) -> int:
        """Return how many sessions were created since the given time."""

    def list_recent_sessions(self, limit: int) -> list[MeetupSession]:
        """Return the most recently created sessions."""


@dataclass
class AdminService:
    """Service for admin dashboards."""

    admin_repository: AdminRepository
    meetup_service: MeetupService
    user_directory: UserDirectory

    def overview(self, limit: int = 50) -> dict[str, object]:
        """Return session statistics and the most recent sessions."""
        counts = self.admin_repository.count_by_status()
        total = sum(counts.values())
        completed = counts.get(MeetupStatus.COMPLETED, 0)
        start_of_day = self.meetup_service.clock().replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        sessions = self.admin_repository.list_recent_sessions(limit)
        return {
            "stats": {
                "total": total,
                "completed": completed,
                "success_rate": round(completed / total * 100) if total else 0,
                "today": self.admin_repository.count_created_since(start_of_day),
                "by_status": {
                    status.value: counts.get(status, 0) for status in MeetupStatus
                },
            },
            "sessions": self._serialize_sessions(sessions),
        }

    def get_session_detail(self, session_id: UUID) -> dict[str, object] | None:
        """Return a full session record, including locations."""
        session = self.meetup_service.repository.get_session(session_id)
        if session is None:
            return None
        detail = self._serialize_sessions([session])[0]
        detail.update(
            {
                "requester_location": _serialize_point(session.requester_location),
                "addressee_location": _serialize_point(session.addressee_location),
                "completed_at": session.completed_at.isoformat()
                if session.completed_at
                else None,
                "duration_minutes": _duration_minutes(session),
            }
        )
        return detail

    def expire_stale_sessions(self) -> int:
        """Run the pending session expiry sweep."""
        return self.meetup_service.expire_stale_sessions()

    def _serialize_sessions(
        self, sessions: list[MeetupSession]
    ) -> list[dict[str, object]]:
        user_ids = {session.requester_id for session in sessions} | {
            session.addressee_id for session in sessions
        }
        names = self.user_directory.get_usernames(user_ids) if user_ids else {}
        return [
            {
                "id": str(session.id),
                "status": session.status.value,
                "created_at": session.created_at.isoformat(),
                "requester_id": session.requester_id,
                "requester_name": names.get(session.requester_id),
                "addressee_id": session.addressee_id,
                "addressee_name": names.get(session.addressee_id),
                "requester_confirmed": session.requester_confirmed,
                "addressee_confirmed": session.addressee_confirmed,
                "proximity_successful": session.proximity_successful,
            }
            for session in sessions
        ]


def _serialize_point(point: GeoPoint | None) -> dict[str, float] | None:
    if point is None:
        return None
    return {"latitude": point.latitude, "longitude": point.longitude}


def _duration_minutes(session: MeetupSession) -> int | None:
    if session.completed_at is None:
        return None
    elapsed: timedelta = session.completed_at - session.created_at
    return round(elapsed.total_seconds() / 60)
