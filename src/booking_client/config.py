"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from booking_client.domain.orders import ClearPolicy

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    api_base_url: str = "http://localhost:8080/api"
    http_timeout_seconds: float = 15.0
    client_notification_poll_seconds: float = 10.0
    vendor_notification_poll_seconds: float = 10.0
    mark_read_refresh_delay_seconds: float = 1.0
    availability_debounce_seconds: float = 0.5
    subscribe_close_delay_seconds: float = 0.1
    cart_clear_policy: ClearPolicy = ClearPolicy.ALL
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_base_url(raw: str) -> str:
    """Strip trailing slashes so paths can be appended safely."""
    cleaned = raw.strip()
    while cleaned.endswith("/"):
        cleaned = cleaned[:-1]
    return cleaned
