"""Proximity-gated meetup session state machine."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from meetup_tracker.domain.errors import (
    Forbidden,
    InvalidRequest,
    NotFound,
    SessionClosed,
    StoreError,
)
from meetup_tracker.domain.geo import haversine_feet, is_within_proximity
from meetup_tracker.domain.meetups import (
    ConfirmationResult,
    GeoPoint,
    MeetupSession,
    MeetupStatus,
    Party,
    PendingRequest,
)

logger = logging.getLogger(__name__)

# Allowed target statuses from each current status.
ALLOWED_TRANSITIONS: dict[MeetupStatus, frozenset[MeetupStatus]] = {
    MeetupStatus.PENDING: frozenset(
        {
            MeetupStatus.COMPLETED,
            MeetupStatus.FAILED_PROXIMITY,
            MeetupStatus.DENIED,
            MeetupStatus.ENDED,
        }
    ),
    MeetupStatus.COMPLETED: frozenset({MeetupStatus.ENDED}),
    MeetupStatus.FAILED_PROXIMITY: frozenset(),
    MeetupStatus.DENIED: frozenset(),
    MeetupStatus.ENDED: frozenset(),
}


def sources_for(target: MeetupStatus) -> frozenset[MeetupStatus]:
    """Return the statuses from which the target status is reachable."""
    return frozenset(
        status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets
    )


class MeetupSessionRepository(Protocol):
    """Persistence interface for meetup sessions."""

    def create_session(self, requester_id: int, addressee_id: int) -> MeetupSession:
        """Create a pending session, or return the pending one for the pair."""

    def get_session(self, session_id: UUID) -> MeetupSession | None:
        """Return a session by id, if present."""

    def update_party_confirmation(
        self, session_id: UUID, party: Party, location: GeoPoint
    ) -> MeetupSession | None:
        """Atomically confirm a party of a pending session.

        Returns the post-write snapshot, or None when no pending row was updated.
        """

    def update_status(  # noqa: PLR0913
        self,
        session_id: UUID,
        status: MeetupStatus,
        expected: Iterable[MeetupStatus],
        proximity_successful: bool | None = None,
        completed_at: datetime | None = None,
    ) -> MeetupSession | None:
        """Move a session to a new status if its current status is expected.

        The proximity result is always written, so None clears it. Returns the
        post-write snapshot, or None when the status did not match.
        """

    def find_pending_between(self, user_a: int, user_b: int) -> MeetupSession | None:
        """Return the pending session for an unordered pair of users, if any."""

    def find_pending_for_addressee(self, user_id: int) -> list[MeetupSession]:
        """Return pending sessions addressed to the user, newest first."""

    def find_pending_created_before(self, cutoff: datetime) -> list[MeetupSession]:
        """Return pending sessions created before the cutoff."""


class UserDirectory(Protocol):
    """Lookup interface for user display names."""

    def get_usernames(self, user_ids: Iterable[int]) -> dict[int, str]:
        """Return usernames keyed by user id."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class MeetupService:
    """Owns the lifecycle of meetup sessions between two users."""

    repository: MeetupSessionRepository
    user_directory: UserDirectory
    pending_ttl: timedelta | None = timedelta(hours=1)
    clock: Callable[[], datetime] = field(default=_utcnow)

    def request_meetup(self, requester_id: int, addressee_id: int) -> UUID:
        """Create a pending session or join the one already open for the pair."""
        if requester_id == addressee_id:
            raise InvalidRequest("Cannot request a meetup with yourself.")

        existing = self.repository.find_pending_between(requester_id, addressee_id)
        if existing is not None:
            existing = self._expire_if_stale(existing)
        if existing is not None and not existing.is_terminal:
            logger.info(
                "Joining existing meetup session %s between users %s and %s",
                existing.id,
                requester_id,
                addressee_id,
            )
            return existing.id

        session = self.repository.create_session(requester_id, addressee_id)
        logger.info(
            "Created meetup session %s between users %s and %s",
            session.id,
            requester_id,
            addressee_id,
        )
        return session.id

    def confirm(
        self, session_id: UUID, user_id: int, location: GeoPoint
    ) -> ConfirmationResult:
        """Record a party's confirmation and resolve proximity once both confirm."""
        session = self._load(session_id)
        party = _require_party(session, user_id)
        session = self._expire_if_stale(session)
        _require_open(session)

        updated = self.repository.update_party_confirmation(
            session_id, party, location
        )
        if updated is None:
            current = self._load(session_id)
            if current.is_terminal:
                raise SessionClosed(f"Meetup session {session_id} is {current.status}.")
            raise StoreError(
                f"Confirmation for meetup session {session_id} was not applied"
            )

        if not updated.both_confirmed:
            logger.info(
                "User %s confirmed meetup session %s as %s; waiting for other party",
                user_id,
                session_id,
                party,
            )
            return ConfirmationResult(status=MeetupStatus.PENDING)

        return self._resolve_proximity(updated)

    def deny(self, session_id: UUID, user_id: int) -> MeetupSession:
        """Decline a pending meetup session."""
        session = self._load(session_id)
        _require_party(session, user_id)
        session = self._expire_if_stale(session)
        _require_open(session)
        denied = self._transition(session, MeetupStatus.DENIED)
        logger.info("Meetup session %s denied by user %s", session_id, user_id)
        return denied

    def end(self, session_id: UUID, user_id: int) -> MeetupSession:
        """End a pending or completed meetup session."""
        session = self._load(session_id)
        _require_party(session, user_id)
        if MeetupStatus.ENDED not in ALLOWED_TRANSITIONS[session.status]:
            raise SessionClosed(
                f"Meetup session {session_id} cannot be ended from {session.status}."
            )
        ended = self._transition(session, MeetupStatus.ENDED)
        logger.info("Meetup session %s ended by user %s", session_id, user_id)
        return ended

    def get_status(self, session_id: UUID, user_id: int) -> MeetupSession:
        """Return the stored session snapshot for a participant without writing."""
        session = self._load(session_id)
        _require_party(session, user_id)
        return session

    def find_pending_requests_for(self, user_id: int) -> list[PendingRequest]:
        """Return incoming pending meetup requests for the addressee."""
        sessions = [
            session
            for session in self.repository.find_pending_for_addressee(user_id)
            if not self._is_stale(session)
        ]
        names = (
            self.user_directory.get_usernames(
                {session.requester_id for session in sessions}
            )
            if sessions
            else {}
        )
        return [
            PendingRequest(
                session_id=session.id,
                requester_id=session.requester_id,
                requester_name=names.get(session.requester_id),
                created_at=session.created_at,
            )
            for session in sessions
        ]

    def expire_stale_sessions(self) -> int:
        """End every pending session older than the configured TTL."""
        if self.pending_ttl is None:
            return 0
        cutoff = self.clock() - self.pending_ttl
        expired = 0
        for session in self.repository.find_pending_created_before(cutoff):
            if self._expire(session) is not None:
                expired += 1
        if expired:
            logger.info("Expired %s stale pending meetup sessions", expired)
        return expired

    def _resolve_proximity(self, session: MeetupSession) -> ConfirmationResult:
        requester_location = session.requester_location
        addressee_location = session.addressee_location
        if requester_location is None or addressee_location is None:
            raise StoreError(
                f"Meetup session {session.id} is confirmed without both locations"
            )
        distance_feet = haversine_feet(requester_location, addressee_location)
        successful = is_within_proximity(distance_feet)
        status = (
            MeetupStatus.COMPLETED if successful else MeetupStatus.FAILED_PROXIMITY
        )
        resolved = self.repository.update_status(
            session.id,
            status,
            expected={MeetupStatus.PENDING},
            proximity_successful=successful,
            completed_at=self.clock(),
        )
        if resolved is None:
            current = self._load(session.id)
            if current.status in {
                MeetupStatus.COMPLETED,
                MeetupStatus.FAILED_PROXIMITY,
            }:
                return ConfirmationResult(
                    status=current.status, distance_feet=distance_feet
                )
            raise SessionClosed(f"Meetup session {session.id} is {current.status}.")

        logger.info(
            "Proximity check for meetup session %s: %.2f feet, status %s",
            session.id,
            distance_feet,
            resolved.status,
        )
        return ConfirmationResult(status=resolved.status, distance_feet=distance_feet)

    def _transition(
        self, session: MeetupSession, target: MeetupStatus
    ) -> MeetupSession:
        updated = self.repository.update_status(
            session.id,
            target,
            expected=sources_for(target),
            completed_at=self.clock(),
        )
        if updated is None:
            current = self._load(session.id)
            raise SessionClosed(
                f"Meetup session {session.id} cannot move from {current.status} "
                f"to {target}."
            )
        return updated

    def _load(self, session_id: UUID) -> MeetupSession:
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFound(f"Meetup session {session_id} not found.")
        return session

    def _is_stale(self, session: MeetupSession) -> bool:
        return (
            self.pending_ttl is not None
            and session.status is MeetupStatus.PENDING
            and self.clock() - session.created_at > self.pending_ttl
        )

    def _expire_if_stale(self, session: MeetupSession) -> MeetupSession:
        if not self._is_stale(session):
            return session
        expired = self._expire(session)
        if expired is not None:
            return expired
        return self._load(session.id)

    def _expire(self, session: MeetupSession) -> MeetupSession | None:
        expired = self.repository.update_status(
            session.id,
            MeetupStatus.ENDED,
            expected={MeetupStatus.PENDING},
            completed_at=self.clock(),
        )
        if expired is not None:
            logger.info("Expired stale pending meetup session %s", session.id)
        return expired


def _require_party(session: MeetupSession, user_id: int) -> Party:
    party = session.party_for(user_id)
    if party is None:
        raise Forbidden(f"User {user_id} is not part of meetup session {session.id}.")
    return party


def _require_open(session: MeetupSession) -> None:
    if session.is_terminal:
        raise SessionClosed(f"Meetup session {session.id} is {session.status}.")
