"""Meetup session endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from meetup_tracker.api.models import (
    ConfirmBody,
    ConfirmResponse,
    MeetupRequestBody,
    MeetupRequestResponse,
    MeetupStatusResponse,
    OkResponse,
    PendingRequestItem,
    PendingRequestsResponse,
)
from meetup_tracker.domain.meetups import GeoPoint

if TYPE_CHECKING:
    from meetup_tracker.containers import AppContainer

router = APIRouter(prefix="/meetups", tags=["meetups"])


async def current_user_id(x_user_id: str | None = Header(default=None)) -> int:
    """Resolve the caller from the identity header set upstream."""
    if not x_user_id or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return int(x_user_id)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.post(
    "/request",
    status_code=status.HTTP_201_CREATED,
    response_model=MeetupRequestResponse,
)
async def request_meetup(
    body: MeetupRequestBody,
    request: Request,
    user_id: int = Depends(current_user_id),
) -> MeetupRequestResponse:
    """Create a meetup session or join the pending one for the pair."""
    session_id = _container(request).meetup_service.request_meetup(
        user_id, body.addressee_id
    )
    return MeetupRequestResponse(session_id=session_id)


@router.post("/{session_id}/confirm", response_model=ConfirmResponse)
async def confirm_meetup(
    session_id: UUID,
    body: ConfirmBody,
    request: Request,
    user_id: int = Depends(current_user_id),
) -> ConfirmResponse:
    """Confirm the meetup with the caller's current location."""
    result = _container(request).meetup_service.confirm(
        session_id,
        user_id,
        GeoPoint(latitude=body.latitude, longitude=body.longitude),
    )
    return ConfirmResponse(
        final_status=result.status,
        distance_feet=(
            round(result.distance_feet, 2) if result.distance_feet is not None else None
        ),
    )


@router.put("/{session_id}/deny", response_model=OkResponse)
async def deny_meetup(
    session_id: UUID,
    request: Request,
    user_id: int = Depends(current_user_id),
) -> OkResponse:
    """Decline a pending meetup request."""
    _container(request).meetup_service.deny(session_id, user_id)
    return OkResponse()


@router.post("/{session_id}/end", response_model=OkResponse)
async def end_meetup(
    session_id: UUID,
    request: Request,
    user_id: int = Depends(current_user_id),
) -> OkResponse:
    """End a pending or completed meetup."""
    _container(request).meetup_service.end(session_id, user_id)
    return OkResponse()


@router.get("/{session_id}/status", response_model=MeetupStatusResponse)
async def meetup_status(
    session_id: UUID,
    request: Request,
    user_id: int = Depends(current_user_id),
) -> MeetupStatusResponse:
    """Return the session snapshot polled by clients."""
    session = _container(request).meetup_service.get_status(session_id, user_id)
    return MeetupStatusResponse.from_session(session)


@router.get("/pending", response_model=PendingRequestsResponse)
async def pending_meetups(
    request: Request,
    user_id: int = Depends(current_user_id),
) -> PendingRequestsResponse:
    """Return incoming meetup requests awaiting the caller's decision."""
    pending = _container(request).meetup_service.find_pending_requests_for(user_id)
    return PendingRequestsResponse(
        pending_requests=[PendingRequestItem.from_request(item) for item in pending]
    )
