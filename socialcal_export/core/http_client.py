"""Shared HTTP client manager for outbound document-store requests.

One ``httpx.AsyncClient`` per client id is kept for the lifetime of the
server so that repeated exports reuse pooled connections.
"""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

_shared_clients: dict[str, httpx.AsyncClient] = {}
_client_lock = asyncio.Lock()

DEFAULT_LIMITS = httpx.Limits(
    max_connections=10,
    max_keepalive_connections=5,
)

DEFAULT_TIMEOUT = httpx.Timeout(
    connect=10.0,
    read=30.0,
    write=10.0,
    pool=30.0,
)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "socialcal-export/1.0",
    "Accept": "application/json",
}


def get_request_headers() -> dict[str, str]:
    """Get default headers with correlation ID for request tracing.

    Returns:
        Headers dictionary with correlation ID if one is set for this request
    """
    from socialcal_export.api.middleware import get_request_id

    headers = DEFAULT_HEADERS.copy()
    request_id = get_request_id()
    if request_id != "no-request-id":
        headers["X-Request-ID"] = request_id
    return headers


async def get_shared_client(
    client_id: str = "default",
    limits: Optional[httpx.Limits] = None,
    timeout: Optional[httpx.Timeout] = None,
) -> httpx.AsyncClient:
    """Get or create a shared HTTP client with connection pooling.

    Args:
        client_id: Identifier for the client (allows multiple clients if needed)
        limits: Custom connection limits
        timeout: Custom timeout configuration

    Returns:
        Shared httpx.AsyncClient

    Raises:
        RuntimeError: If client creation fails
    """
    async with _client_lock:
        if client_id not in _shared_clients or _shared_clients[client_id].is_closed:
            effective_limits = limits or DEFAULT_LIMITS
            effective_timeout = timeout or DEFAULT_TIMEOUT

            logger.debug(
                "Creating shared HTTP client '%s' with limits: max_connections=%s, "
                "max_keepalive=%s",
                client_id,
                effective_limits.max_connections,
                effective_limits.max_keepalive_connections,
            )

            try:
                _shared_clients[client_id] = httpx.AsyncClient(
                    limits=effective_limits,
                    timeout=effective_timeout,
                    follow_redirects=True,
                    headers=DEFAULT_HEADERS,
                )
            except Exception as e:
                logger.exception("Failed to create shared HTTP client '%s'", client_id)
                raise RuntimeError(f"Failed to create shared HTTP client: {e}") from e

            logger.info("Created shared HTTP client '%s'", client_id)

        return _shared_clients[client_id]


async def close_all_clients() -> None:
    """Close all shared HTTP clients and clean up resources.

    This should be called during application shutdown.
    """
    async with _client_lock:
        for client_id, client in _shared_clients.items():
            if client.is_closed:
                continue
            try:
                await client.aclose()
                logger.debug("Closed shared HTTP client '%s'", client_id)
            except Exception as e:
                logger.warning("Error closing shared HTTP client '%s': %s", client_id, e)

        _shared_clients.clear()
