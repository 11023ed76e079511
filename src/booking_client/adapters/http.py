"""Shared httpx helpers for the marketplace API adapters."""

import logging

import httpx

from booking_client.domain.errors import RemoteCallError, SessionExpiredError

_logger = logging.getLogger(__name__)


def create_http_client(
    base_url: str, token: str, timeout_seconds: float = 15.0
) -> httpx.AsyncClient:
    """Create an httpx session that authenticates every call with the bearer token."""
    return httpx.AsyncClient(
        base_url=base_url,
        headers={
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        },
        timeout=timeout_seconds,
    )


async def request_json(
    http_client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    action: str,
    **kwargs: object,
) -> object:
    """Send a request and return the decoded JSON body, or None when empty."""
    response = await send(http_client, method, url, action=action, **kwargs)
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        _logger.warning("%s returned a non-JSON body: %s", action, exc)
        raise RemoteCallError(
            f"{action} returned an invalid response",
            status_code=response.status_code,
        ) from exc


async def send(
    http_client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    action: str,
    **kwargs: object,
) -> httpx.Response:
    """Send a request, converting transport and status failures to RemoteCallError."""
    try:
        response = await http_client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        _logger.warning("%s failed: %s", action, exc)
        raise RemoteCallError(f"{action} failed: {exc}") from exc
    if response.status_code == httpx.codes.UNAUTHORIZED:
        raise SessionExpiredError(
            "Session expired, please sign in again",
            status_code=response.status_code,
        )
    if response.is_error:
        message = error_message(response)
        _logger.warning(
            "%s failed (status=%s): %s", action, response.status_code, message
        )
        raise RemoteCallError(message, status_code=response.status_code)
    return response


def error_message(response: httpx.Response) -> str:
    """Extract the message an API error body carries.

    Accepts a bare JSON string, a ``message`` or ``error`` field, or plain
    text, and falls back to the status code.
    """
    fallback = f"HTTP error! status: {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return text or fallback
    if isinstance(data, str) and data:
        return data
    if isinstance(data, dict):
        for key in ("message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback
