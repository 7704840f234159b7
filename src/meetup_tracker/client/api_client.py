"""HTTP client for the meetup API."""

from dataclasses import dataclass
from typing import Protocol, TypeVar
from uuid import UUID

import httpx
from pydantic import BaseModel, ValidationError

from meetup_tracker.api.models import (
    ConfirmResponse,
    MeetupRequestResponse,
    MeetupStatusResponse,
    PendingRequestItem,
    PendingRequestsResponse,
)
from meetup_tracker.domain.meetups import GeoPoint

ModelT = TypeVar("ModelT", bound=BaseModel)


class MeetupApiError(Exception):
    """Raised when a meetup API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MeetupApi(Protocol):
    """Interface for meetup API interactions."""

    async def request_meetup(self, addressee_id: int) -> UUID:
        """Create or join a meetup session with the addressee."""

    async def confirm(self, session_id: UUID, location: GeoPoint) -> ConfirmResponse:
        """Confirm a meetup with the current location."""

    async def deny(self, session_id: UUID) -> None:
        """Decline a pending meetup."""

    async def end(self, session_id: UUID) -> None:
        """End a meetup session."""

    async def get_status(self, session_id: UUID) -> MeetupStatusResponse:
        """Return the current session snapshot."""

    async def pending_requests(self) -> list[PendingRequestItem]:
        """Return incoming meetup requests."""


@dataclass
class HttpxMeetupApiClient:
    """Meetup API client implemented with httpx."""

    base_url: str
    user_id: int
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, user_id: int) -> "HttpxMeetupApiClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url, user_id=user_id, http_client=httpx.AsyncClient())

    async def request_meetup(self, addressee_id: int) -> UUID:
        """Create or join a meetup session with the addressee."""
        data = await self._send(
            "POST", "/meetups/request", json={"addressee_id": addressee_id}
        )
        return _parse(MeetupRequestResponse, data).session_id

    async def confirm(self, session_id: UUID, location: GeoPoint) -> ConfirmResponse:
        """Confirm a meetup with the current location."""
        data = await self._send(
            "POST",
            f"/meetups/{session_id}/confirm",
            json={"latitude": location.latitude, "longitude": location.longitude},
        )
        return _parse(ConfirmResponse, data)

    async def deny(self, session_id: UUID) -> None:
        """Decline a pending meetup."""
        await self._send("PUT", f"/meetups/{session_id}/deny")

    async def end(self, session_id: UUID) -> None:
        """End a meetup session."""
        await self._send("POST", f"/meetups/{session_id}/end")

    async def get_status(self, session_id: UUID) -> MeetupStatusResponse:
        """Return the current session snapshot."""
        data = await self._send("GET", f"/meetups/{session_id}/status")
        return _parse(MeetupStatusResponse, data)

    async def pending_requests(self) -> list[PendingRequestItem]:
        """Return incoming meetup requests."""
        data = await self._send("GET", "/meetups/pending")
        return _parse(PendingRequestsResponse, data).pending_requests

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _send(
        self, method: str, path: str, json: dict[str, object] | None = None
    ) -> dict:
        url = f"{self.base_url.rstrip('/')}{path}"
        headers = {"X-User-Id": str(self.user_id)}
        try:
            response = await self.http_client.request(
                method, url, json=json, headers=headers, timeout=10
            )
        except httpx.HTTPError as exc:
            raise MeetupApiError(f"{method} {path} failed: {exc}") from exc
        if response.is_error:
            raise MeetupApiError(
                _error_detail(response) or f"{method} {path} failed",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MeetupApiError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc


def _parse(model: type[ModelT], data: object) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise MeetupApiError(f"Unexpected {model.__name__} payload: {exc}") from exc


def _error_detail(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("detail"), str):
        return payload["detail"]
    return None
