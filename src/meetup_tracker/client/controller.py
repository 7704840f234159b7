"""Client-side meetup flow: actions, polling and restore after reload."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from meetup_tracker.api.models import ConfirmResponse, MeetupStatusResponse
from meetup_tracker.client.api_client import MeetupApi, MeetupApiError
from meetup_tracker.client.poller import MeetupStatusPoller
from meetup_tracker.client.state_store import ViewStateStore
from meetup_tracker.client.view_state import (
    MeetupView,
    MeetupViewState,
    Reconciliation,
    reconcile,
)
from meetup_tracker.domain.meetups import GeoPoint, MeetupStatus

logger = logging.getLogger(__name__)

COMPLETED_NOTICE = "Meetup confirmed! Both users are within 10 feet of each other."
WAITING_NOTICE = "Location confirmed. Waiting for the other user..."
ENDED_NOTICE = "Meetup session ended successfully."


def _log_notice(message: str) -> None:
    logger.info("Meetup notice: %s", message)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class MeetupClient:
    """Drives the meetup flow for one signed-in user."""

    api: MeetupApi
    store: ViewStateStore
    user_id: int
    poller: MeetupStatusPoller
    max_state_age: timedelta = timedelta(hours=1)
    notify: Callable[[str], None] = _log_notice
    clock: Callable[[], datetime] = _utcnow
    state: MeetupViewState = field(default_factory=MeetupViewState.idle)

    async def request_meetup(self, addressee_id: int) -> UUID:
        """Request a meetup and show the consent prompt."""
        session_id = await self.api.request_meetup(addressee_id)
        self._show(session_id, MeetupView.CONSENT)
        return session_id

    async def accept(self, session_id: UUID) -> None:
        """Accept an incoming request and show the consent prompt."""
        self._show(session_id, MeetupView.CONSENT)

    async def confirm(self, location: GeoPoint) -> ConfirmResponse:
        """Confirm the active meetup with the current location."""
        session_id = self._require_active()
        result = await self.api.confirm(session_id, location)
        if result.final_status == MeetupStatus.COMPLETED:
            self._show(session_id, MeetupView.ACTIVE)
            self.notify(COMPLETED_NOTICE)
        elif result.final_status == MeetupStatus.PENDING:
            self._show(session_id, MeetupView.WAITING)
            self.notify(WAITING_NOTICE)
            await self.poller.start(session_id, self._on_terminal)
        else:
            await self._reset()
            self.notify("Meetup failed - you are not close enough to each other.")
        return result

    async def deny(self, session_id: UUID) -> None:
        """Decline an incoming meetup request."""
        await self.api.deny(session_id)
        if self.state.active_session_id == session_id:
            await self._reset()
        self.notify("Meetup request declined.")

    async def end(self) -> None:
        """End the active meetup session."""
        session_id = self._require_active()
        await self.api.end(session_id)
        await self._reset()
        self.notify(ENDED_NOTICE)

    async def restore(self) -> MeetupViewState:
        """Rebuild the view from the cache, always checked against the server."""
        cached = self.store.load()
        if cached is None:
            return self.state
        if cached.is_stale(self.clock(), self.max_state_age):
            logger.info("Discarding meetup view state saved at %s", cached.saved_at)
            await self._reset()
            return self.state
        if cached.active_session_id is None:
            self.state = cached
            return self.state

        try:
            snapshot = await self.api.get_status(cached.active_session_id)
        except MeetupApiError as exc:
            logger.info(
                "Clearing meetup session %s: %s", cached.active_session_id, exc
            )
            await self._reset()
            return self.state

        await self._apply(reconcile(cached, snapshot, self.user_id))
        return self.state

    async def close(self) -> None:
        """Stop background polling."""
        await self.poller.stop()

    async def _on_terminal(self, snapshot: MeetupStatusResponse) -> None:
        await self._apply(reconcile(self.state, snapshot, self.user_id))
        if self.state.view == MeetupView.ACTIVE:
            self.notify(COMPLETED_NOTICE)

    async def _apply(self, outcome: Reconciliation) -> None:
        if outcome.notice:
            self.notify(outcome.notice)
        if outcome.state.active_session_id is None:
            await self._reset()
        else:
            self.state = self.store.save(outcome.state)
        if outcome.poll and self.state.active_session_id is not None:
            await self.poller.start(self.state.active_session_id, self._on_terminal)

    async def _reset(self) -> None:
        await self.poller.stop()
        self.store.clear()
        self.state = MeetupViewState.idle()

    def _show(self, session_id: UUID, view: MeetupView) -> None:
        self.state = self.store.save(
            self.state.model_copy(
                update={"active_session_id": session_id, "view": view}
            )
        )

    def _require_active(self) -> UUID:
        if self.state.active_session_id is None:
            raise MeetupApiError("No active meetup session.")
        return self.state.active_session_id
