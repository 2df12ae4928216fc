"""ASGI entrypoint for the verification relay API."""

from verification_relay.api.app import create_app
from verification_relay.containers import build_container

app = create_app(build_container())
