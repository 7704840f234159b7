"""Pydantic models for the meetup HTTP interface."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from meetup_tracker.domain.meetups import MeetupSession, MeetupStatus, PendingRequest


class MeetupRequestBody(BaseModel):
    """Body for initiating a meetup."""

    addressee_id: int


class MeetupRequestResponse(BaseModel):
    """Identifier shared by both parties of a meetup."""

    session_id: UUID


class ConfirmBody(BaseModel):
    """Location captured when a party confirms."""

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class ConfirmResponse(BaseModel):
    """Result of a confirmation."""

    final_status: MeetupStatus
    distance_feet: float | None = None


class OkResponse(BaseModel):
    status: str = "ok"


class MeetupStatusResponse(BaseModel):
    """Snapshot of a meetup session returned to participants."""

    session_id: UUID
    status: MeetupStatus
    requester_id: int
    addressee_id: int
    requester_confirmed: bool
    addressee_confirmed: bool
    proximity_successful: bool | None = None
    created_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_session(cls, session: MeetupSession) -> "MeetupStatusResponse":
        return cls(
            session_id=session.id,
            status=session.status,
            requester_id=session.requester_id,
            addressee_id=session.addressee_id,
            requester_confirmed=session.requester_confirmed,
            addressee_confirmed=session.addressee_confirmed,
            proximity_successful=session.proximity_successful,
            created_at=session.created_at,
            completed_at=session.completed_at,
        )

    def confirmed_by(self, user_id: int) -> bool:
        """Return true when the given participant has confirmed."""
        if user_id == self.requester_id:
            return self.requester_confirmed
        if user_id == self.addressee_id:
            return self.addressee_confirmed
        return False


class PendingRequestItem(BaseModel):
    """Incoming meetup request."""

    session_id: UUID
    requester_id: int
    requester_name: str | None = None
    created_at: datetime

    @classmethod
    def from_request(cls, request: PendingRequest) -> "PendingRequestItem":
        return cls(
            session_id=request.session_id,
            requester_id=request.requester_id,
            requester_name=request.requester_name,
            created_at=request.created_at,
        )


class PendingRequestsResponse(BaseModel):
    pending_requests: list[PendingRequestItem]
