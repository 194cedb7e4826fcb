"""Health check route for socialcal_export."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from aiohttp import web

from socialcal_export.data.event_store import EventStore

logger = logging.getLogger(__name__)


def register_health_routes(
    app: web.Application,
    event_store: EventStore,
    time_provider: Callable[[], datetime],
    version: str,
) -> None:
    """Register the health check route.

    Args:
        app: aiohttp web application
        event_store: Configured event store, reported by name
        time_provider: Returns current naive local time
        version: Package version string
    """

    async def health_check(_request: web.Request) -> web.Response:
        payload = {
            "status": "ok",
            "server_time_iso": time_provider().isoformat(),
            "version": version,
            "event_store": getattr(event_store, "name", type(event_store).__name__),
        }
        return web.json_response(payload)

    app.router.add_get("/api/health", health_check)
