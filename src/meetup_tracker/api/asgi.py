"""ASGI entrypoint for the meetup tracker API."""

from meetup_tracker.api.app import create_app
from meetup_tracker.containers import build_container

app = create_app(build_container())
