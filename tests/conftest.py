"""Shared test fixtures."""

import threading
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from meetup_tracker.config import Settings
from meetup_tracker.containers import AppContainer
from meetup_tracker.domain.meetups import GeoPoint, MeetupSession, MeetupStatus, Party
from meetup_tracker.services.admin import AdminRepository, AdminService
from meetup_tracker.services.meetups import (
    MeetupService,
    MeetupSessionRepository,
    UserDirectory,
)

START = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class InMemoryMeetupRepository(MeetupSessionRepository):
    """In-memory meetup repository; a lock stands in for row-level atomicity."""

    clock: FakeClock = field(default_factory=FakeClock)
    sessions: dict[UUID, MeetupSession] = field(default_factory=dict)
    fail_confirmations: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def create_session(self, requester_id: int, addressee_id: int) -> MeetupSession:
        with self._lock:
            existing = self._pending_between(requester_id, addressee_id)
            if existing is not None:
                return existing
            session = MeetupSession(
                id=uuid4(),
                requester_id=requester_id,
                addressee_id=addressee_id,
                status=MeetupStatus.PENDING,
                requester_confirmed=False,
                addressee_confirmed=False,
                requester_location=None,
                addressee_location=None,
                proximity_successful=None,
                created_at=self.clock(),
            )
            self.sessions[session.id] = session
            return session

    def get_session(self, session_id: UUID) -> MeetupSession | None:
        return self.sessions.get(session_id)

    def update_party_confirmation(
        self, session_id: UUID, party: Party, location: GeoPoint
    ) -> MeetupSession | None:
        if self.fail_confirmations:
            return None
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None or session.status != MeetupStatus.PENDING:
                return None
            if party is Party.REQUESTER:
                updated = replace(
                    session, requester_confirmed=True, requester_location=location
                )
            else:
                updated = replace(
                    session, addressee_confirmed=True, addressee_location=location
                )
            self.sessions[session_id] = updated
            return updated

    def update_status(  # noqa: PLR0913
        self,
        session_id: UUID,
        status: MeetupStatus,
        expected: Iterable[MeetupStatus],
        proximity_successful: bool | None = None,
        completed_at: datetime | None = None,
    ) -> MeetupSession | None:
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None or session.status not in set(expected):
                return None
            updated = replace(
                session,
                status=status,
                proximity_successful=proximity_successful,
                completed_at=completed_at or session.completed_at,
            )
            self.sessions[session_id] = updated
            return updated

    def find_pending_between(self, user_a: int, user_b: int) -> MeetupSession | None:
        return self._pending_between(user_a, user_b)

    def find_pending_for_addressee(self, user_id: int) -> list[MeetupSession]:
        pending = [
            session
            for session in self.sessions.values()
            if session.addressee_id == user_id
            and session.status == MeetupStatus.PENDING
        ]
        return sorted(pending, key=lambda session: session.created_at, reverse=True)

    def find_pending_created_before(self, cutoff: datetime) -> list[MeetupSession]:
        return [
            session
            for session in self.sessions.values()
            if session.status == MeetupStatus.PENDING and session.created_at < cutoff
        ]

    def _pending_between(self, user_a: int, user_b: int) -> MeetupSession | None:
        pair = {user_a, user_b}
        for session in self.sessions.values():
            if (
                {session.requester_id, session.addressee_id} == pair
                and session.status == MeetupStatus.PENDING
            ):
                return session
        return None


@dataclass
class InMemoryUserDirectory(UserDirectory):
    """In-memory username lookup for tests."""

    usernames: dict[int, str] = field(
        default_factory=lambda: {1: "alice", 2: "bob", 3: "carol"}
    )

    def get_usernames(self, user_ids: Iterable[int]) -> dict[int, str]:
        return {
            user_id: self.usernames[user_id]
            for user_id in user_ids
            if user_id in self.usernames
        }


@dataclass
class InMemoryAdminRepository(AdminRepository):
    """Admin queries over the in-memory meetup repository."""

    meetups: InMemoryMeetupRepository

    def count_by_status(self) -> dict[str, int]:
        return dict(Counter(s.status.value for s in self.meetups.sessions.values()))

    def count_created_since(self, since: datetime) -> int:
        sessions = self.meetups.sessions.values()
        return sum(1 for session in sessions if session.created_at >= since)

    def list_recent_sessions(self, limit: int) -> list[MeetupSession]:
        sessions = sorted(
            self.meetups.sessions.values(),
            key=lambda session: session.created_at,
            reverse=True,
        )
        return sessions[:limit]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def meetup_repository(clock: FakeClock) -> InMemoryMeetupRepository:
    return InMemoryMeetupRepository(clock=clock)


@pytest.fixture
def user_directory() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture
def meetup_service(
    meetup_repository: InMemoryMeetupRepository,
    user_directory: InMemoryUserDirectory,
    clock: FakeClock,
) -> MeetupService:
    return MeetupService(
        repository=meetup_repository,
        user_directory=user_directory,
        pending_ttl=timedelta(hours=1),
        clock=clock,
    )


@pytest.fixture
def container(
    settings: Settings,
    meetup_repository: InMemoryMeetupRepository,
    user_directory: InMemoryUserDirectory,
    meetup_service: MeetupService,
) -> AppContainer:
    admin_service = AdminService(
        admin_repository=InMemoryAdminRepository(meetup_repository),
        meetup_service=meetup_service,
        user_directory=user_directory,
    )
    return AppContainer(
        settings=settings,
        meetup_service=meetup_service,
        admin_service=admin_service,
    )
