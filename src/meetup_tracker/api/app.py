"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from meetup_tracker.api.admin import router as admin_router
from meetup_tracker.api.meetups import router as meetups_router
from meetup_tracker.app_logging import configure_logging
from meetup_tracker.containers import AppContainer
from meetup_tracker.domain.errors import (
    Forbidden,
    InvalidRequest,
    MeetupError,
    NotFound,
    SessionClosed,
    StoreError,
)

_ERROR_STATUS: dict[type[MeetupError], int] = {
    InvalidRequest: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_403_FORBIDDEN,
    SessionClosed: status.HTTP_409_CONFLICT,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI(title="Meetup Tracker")
    app.state.container = container

    app.include_router(meetups_router)
    app.include_router(admin_router)

    @app.exception_handler(MeetupError)
    async def meetup_error_handler(
        request: Request, exc: MeetupError
    ) -> JSONResponse:
        status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        logger.info(
            "Meetup request rejected",
            extra={"path": request.url.path, "error": type(exc).__name__},
        )
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.exception("Meetup store failure", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Meetup storage is temporarily unavailable."},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
