"""Persistence for the client-side meetup view state."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from meetup_tracker.client.view_state import MeetupViewState

logger = logging.getLogger(__name__)


class ViewStateStore(Protocol):
    """Storage interface for the cached view state."""

    def load(self) -> MeetupViewState | None:
        """Return the cached state, if any."""

    def save(self, state: MeetupViewState) -> MeetupViewState:
        """Persist the state stamped with the save time and return it."""

    def clear(self) -> None:
        """Remove the cached state."""


@dataclass
class FileViewStateStore(ViewStateStore):
    """JSON file implementation of the view state cache."""

    path: Path

    def load(self) -> MeetupViewState | None:
        """Return the cached state, discarding unreadable files."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return MeetupViewState.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable meetup view state at %s", self.path)
            self.clear()
            return None

    def save(self, state: MeetupViewState) -> MeetupViewState:
        """Write the state to disk stamped with the current time."""
        stamped = state.model_copy(update={"saved_at": datetime.now(tz=UTC)})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(stamped.model_dump_json(), encoding="utf-8")
        return stamped

    def clear(self) -> None:
        """Delete the cached state file."""
        self.path.unlink(missing_ok=True)
