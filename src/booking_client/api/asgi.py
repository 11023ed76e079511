"""ASGI entrypoint for the booking client session API."""

from booking_client.api.app import create_app
from booking_client.config import Settings

app = create_app(Settings())
