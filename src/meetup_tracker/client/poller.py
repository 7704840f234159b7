"""Status polling loop for a meetup session."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from uuid import UUID

from meetup_tracker.api.models import MeetupStatusResponse
from meetup_tracker.client.api_client import MeetupApi, MeetupApiError
from meetup_tracker.domain.meetups import TERMINAL_STATUSES

logger = logging.getLogger(__name__)

StatusCallback = Callable[[MeetupStatusResponse], Awaitable[None]]


@dataclass
class MeetupStatusPoller:
    """Polls a session's status until it reaches a terminal state."""

    api: MeetupApi
    interval_seconds: float = 3.0
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, session_id: UUID, on_terminal: StatusCallback) -> None:
        """Start polling, replacing any loop that is already running."""
        await self.stop()
        logger.info("Starting meetup status polling for session %s", session_id)
        self._task = asyncio.create_task(self._run(session_id, on_terminal))

    async def stop(self) -> None:
        """Cancel the polling loop if it is running."""
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Stopped meetup status polling")

    async def wait(self) -> None:
        """Wait for the current polling loop to finish."""
        if self._task is not None:
            await self._task

    async def _run(self, session_id: UUID, on_terminal: StatusCallback) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                snapshot = await self.api.get_status(session_id)
            except MeetupApiError as exc:
                logger.warning(
                    "Meetup status check failed for session %s: %s", session_id, exc
                )
                continue
            if snapshot.status in TERMINAL_STATUSES:
                logger.info(
                    "Meetup session %s reached status %s", session_id, snapshot.status
                )
                await on_terminal(snapshot)
                return
