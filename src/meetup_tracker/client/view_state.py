"""Client-side meetup view state and its reconciliation with the server."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from meetup_tracker.api.models import MeetupStatusResponse
from meetup_tracker.domain.meetups import MeetupStatus


class MeetupView(StrEnum):
    """What the client renders for the meetup flow."""

    IDLE = "idle"
    CONSENT = "consent"
    WAITING = "waiting"
    ACTIVE = "active"


class MeetupViewState(BaseModel):
    """Serializable cache of the meetup view.

    Only a hint for what to re-render after a reload; it is trusted only after
    reconciling against a fresh status snapshot.
    """

    active_session_id: UUID | None = None
    view: MeetupView = MeetupView.IDLE
    saved_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def idle(cls) -> "MeetupViewState":
        return cls()

    def is_stale(self, now: datetime, max_age: timedelta) -> bool:
        """Return true when the cached state is too old to resume."""
        return now - self.saved_at > max_age


@dataclass(frozen=True)
class Reconciliation:
    """Result of reconciling cached view state with the server."""

    state: MeetupViewState
    poll: bool = False
    notice: str | None = None


_TERMINAL_NOTICES = {
    MeetupStatus.FAILED_PROXIMITY: (
        "Meetup failed - you are not close enough to each other."
    ),
    MeetupStatus.DENIED: "Meetup was declined.",
    MeetupStatus.ENDED: "Meetup session was ended.",
}


def reconcile(
    state: MeetupViewState, snapshot: MeetupStatusResponse, user_id: int
) -> Reconciliation:
    """Derive the view for a session from its current server snapshot."""
    if snapshot.status == MeetupStatus.COMPLETED and snapshot.proximity_successful:
        return Reconciliation(
            state=state.model_copy(
                update={
                    "active_session_id": snapshot.session_id,
                    "view": MeetupView.ACTIVE,
                }
            )
        )
    if snapshot.status == MeetupStatus.PENDING:
        if snapshot.confirmed_by(user_id):
            return Reconciliation(
                state=state.model_copy(
                    update={
                        "active_session_id": snapshot.session_id,
                        "view": MeetupView.WAITING,
                    }
                ),
                poll=True,
            )
        return Reconciliation(
            state=state.model_copy(
                update={
                    "active_session_id": snapshot.session_id,
                    "view": MeetupView.CONSENT,
                }
            )
        )
    return Reconciliation(
        state=MeetupViewState.idle(),
        notice=_TERMINAL_NOTICES.get(snapshot.status),
    )
