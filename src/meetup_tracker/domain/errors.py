"""Error taxonomy for meetup sessions."""


class MeetupError(Exception):
    """Base class for user-facing meetup errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(MeetupError):
    """Malformed or self-referential input."""


class NotFound(MeetupError):
    """Unknown meetup session id."""


class Forbidden(MeetupError):
    """Caller is not a participant of the session."""


class SessionClosed(MeetupError):
    """Operation attempted against a terminal session."""


class StoreError(RuntimeError):
    """Persistence layer failure, including writes that were not applied."""
