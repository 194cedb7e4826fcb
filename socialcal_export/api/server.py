"""socialcal_export.api.server: aiohttp server for calendar exports.

Builds the web application (correlation-id middleware, export and health
routes) around a configured event store and runs it until SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from datetime import datetime
from typing import Any, Callable, Optional

from aiohttp import web

from socialcal_export.api.middleware import correlation_id_middleware
from socialcal_export.api.routes import register_export_routes, register_health_routes
from socialcal_export.core.config_manager import (
    DEFAULT_SERVER_PORT,
    ConfigManager,
    get_config_value,
)
from socialcal_export.core.http_client import close_all_clients
from socialcal_export.core.timezone_utils import now_local
from socialcal_export.data import EventStore, build_event_store

logger = logging.getLogger(__name__)

MAX_PORT_ATTEMPTS = 10


def _build_default_config_from_env() -> dict[str, Any]:
    """Build a default config dict from ``.env`` and environment variables."""
    return ConfigManager().load_full_config()


def create_app(
    config: Any,
    event_store: Optional[EventStore] = None,
    time_provider: Callable[[], datetime] = now_local,
) -> web.Application:
    """Create the aiohttp application.

    Args:
        config: dict or dataclass-like config (see ConfigManager)
        event_store: Event store to serve from; built from config when omitted
        time_provider: Source of the export-time "now"

    Returns:
        Configured web.Application
    """
    from socialcal_export import __version__

    store = event_store if event_store is not None else build_event_store(config)

    app = web.Application(middlewares=[correlation_id_middleware])
    register_export_routes(app, event_store=store, time_provider=time_provider)
    register_health_routes(
        app, event_store=store, time_provider=time_provider, version=__version__
    )

    async def _close_clients(_app: web.Application) -> None:
        try:
            await close_all_clients()
            logger.debug("Shared HTTP clients cleaned up")
        except Exception as e:
            logger.warning("Error cleaning up shared HTTP clients: %s", e)

    app.on_cleanup.append(_close_clients)
    logger.debug("Web application created with %s event store", store.name)
    return app


async def _start_site(runner: web.AppRunner, host: str, configured_port: int) -> int:
    """Start a TCP site on the configured port, moving up while it is taken."""
    for port_offset in range(MAX_PORT_ATTEMPTS):
        port = configured_port + port_offset
        site = web.TCPSite(runner, host=host, port=port)
        try:
            await site.start()
            return port
        except OSError as e:
            if "address already in use" not in str(e).lower():
                logger.exception("Failed to start server on %s:%d", host, port)
                raise
            logger.debug("Port %d in use, trying next port", port)

    raise OSError(
        f"Could not find available port in range "
        f"{configured_port}-{configured_port + MAX_PORT_ATTEMPTS - 1}"
    )


async def _serve(config: Any, external_stop_event: asyncio.Event | None = None) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration object/dict.
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers will NOT be registered (caller owns signal handling).
    """
    stop_event = external_stop_event or asyncio.Event()

    app = create_app(config)
    runner = web.AppRunner(app)
    await runner.setup()

    host = get_config_value(config, "server_bind", "0.0.0.0")  # nosec: B104
    configured_port = int(get_config_value(config, "server_port", DEFAULT_SERVER_PORT))

    try:
        port = await _start_site(runner, host, configured_port)
    except OSError:
        await runner.cleanup()
        raise

    if port != configured_port:
        logger.warning("Port %d was busy, serving on %d instead", configured_port, port)
    logger.info("Calendar export server listening on http://%s:%d", host, port)

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)

    await stop_event.wait()
    logger.info("Stop event received, shutting down")

    await runner.cleanup()
    logger.info("Server shutdown complete")


def start_server(config: Any) -> None:
    """Start the asyncio event loop and HTTP server.

    Args:
        config: dict or dataclass-like object with keys:
            - server_bind: host to bind (str)
            - server_port: port (int)
            - event_store: memory, json or firestore
            - events_file: path for the json store
            - firestore_project / firestore_api_key / events_collection
            - request_timeout: outbound HTTP timeout in seconds
            - debug_logging: enable debug logging for socialcal_export (bool)

    Blocks the calling thread until SIGINT/SIGTERM is received.
    """
    from socialcal_export.core.logging_config import configure_export_logging

    debug_mode = bool(get_config_value(config, "debug_logging", False))
    configure_export_logging(debug_mode=debug_mode)
    logger.info("Logging configuration applied: debug_mode=%s", debug_mode)

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Server interrupted")
