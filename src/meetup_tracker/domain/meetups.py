"""Domain models for meetup sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from meetup_tracker.domain.errors import InvalidRequest


class MeetupStatus(StrEnum):
    """Lifecycle status of a meetup session."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED_PROXIMITY = "failed_proximity"
    DENIED = "denied"
    ENDED = "ended"


TERMINAL_STATUSES = frozenset(
    {
        MeetupStatus.COMPLETED,
        MeetupStatus.FAILED_PROXIMITY,
        MeetupStatus.DENIED,
        MeetupStatus.ENDED,
    }
)


class Party(StrEnum):
    """Side of a meetup session."""

    REQUESTER = "requester"
    ADDRESSEE = "addressee"


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate pair."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidRequest(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidRequest(f"Longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class MeetupSession:
    """Represents a persisted meetup session between two users."""

    id: UUID
    requester_id: int
    addressee_id: int
    status: MeetupStatus
    requester_confirmed: bool
    addressee_confirmed: bool
    requester_location: GeoPoint | None
    addressee_location: GeoPoint | None
    proximity_successful: bool | None
    created_at: datetime
    completed_at: datetime | None = None

    def party_for(self, user_id: int) -> Party | None:
        """Return the party the user plays in this session, if any."""
        if user_id == self.requester_id:
            return Party.REQUESTER
        if user_id == self.addressee_id:
            return Party.ADDRESSEE
        return None

    def is_participant(self, user_id: int) -> bool:
        return self.party_for(user_id) is not None

    def confirmed(self, party: Party) -> bool:
        if party is Party.REQUESTER:
            return self.requester_confirmed
        return self.addressee_confirmed

    def location(self, party: Party) -> GeoPoint | None:
        if party is Party.REQUESTER:
            return self.requester_location
        return self.addressee_location

    @property
    def both_confirmed(self) -> bool:
        return self.requester_confirmed and self.addressee_confirmed

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class ConfirmationResult:
    """Outcome of a confirmation call."""

    status: MeetupStatus
    distance_feet: float | None = None


@dataclass(frozen=True)
class PendingRequest:
    """An incoming meetup request awaiting the addressee's decision."""

    session_id: UUID
    requester_id: int
    requester_name: str | None
    created_at: datetime
