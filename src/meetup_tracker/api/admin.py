"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from meetup_tracker.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/meetups", dependencies=[Depends(require_admin)])
async def list_meetups(request: Request, limit: int = 50) -> dict[str, object]:
    """Return meetup statistics and recent sessions."""
    container: AppContainer = request.app.state.container
    return container.admin_service.overview(limit)


@router.get("/meetups/{session_id}", dependencies=[Depends(require_admin)])
async def meetup_detail(session_id: UUID, request: Request) -> dict[str, object]:
    """Return a single meetup session with locations."""
    container: AppContainer = request.app.state.container
    detail = container.admin_service.get_session_detail(session_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return detail


@router.post("/meetups/expire", dependencies=[Depends(require_admin)])
async def expire_meetups(request: Request) -> dict[str, int]:
    """End pending sessions older than the configured TTL."""
    container: AppContainer = request.app.state.container
    return {"expired": container.admin_service.expire_stale_sessions()}
