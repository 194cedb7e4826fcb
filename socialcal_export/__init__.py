"""socialcal_export - iCalendar export service for social dashboard calendars.

Turns a user's stored calendar events into an RFC 5545 document and serves
it over HTTP. Imports are kept light so the package can be inspected without
starting the server.
"""

__version__ = "0.1.0"

from typing import Any, Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors SOCIALCAL_DEBUG (truthy values: "1", "true", "yes", "on"), which
    forces DEBUG verbosity regardless of the requested level.
    """
    import logging
    import os

    from socialcal_export.core.logging_config import build_console_handler

    debug_env = os.environ.get("SOCIALCAL_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(build_console_handler())

    level = logging.INFO
    if isinstance(level_name, str):
        candidate = getattr(logging, level_name.upper(), None)
        if isinstance(candidate, int):
            level = candidate
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def _apply_cli_overrides(cfg: dict[str, Any], args: Optional[object]) -> dict[str, Any]:
    """Apply command line overrides (port, host, events file, debug) to config."""
    import logging

    logger = logging.getLogger(__name__)
    if args is None:
        return cfg

    port = getattr(args, "port", None)
    if port is not None:
        try:
            cfg["server_port"] = int(port)
            logger.debug("Applied command line port override: %d", cfg["server_port"])
        except (ValueError, TypeError) as e:
            logger.warning("Invalid port value from command line '%s': %s", port, e)

    host = getattr(args, "host", None)
    if host:
        cfg["server_bind"] = host

    events_file = getattr(args, "events_file", None)
    if events_file:
        cfg["events_file"] = events_file
        cfg["event_store"] = "json"

    if getattr(args, "debug", False):
        cfg["debug_logging"] = True

    return cfg


def run_server(args: Optional[object] = None) -> None:
    """Start the calendar export server.

    Loads configuration from ``.env`` and the environment, applies command
    line overrides, then delegates to ``socialcal_export.api.server.start_server``
    and blocks until shutdown.

    Args:
        args: Optional argparse namespace with port, host, events_file and debug
    """
    import importlib
    import logging
    import os

    _init_logging(os.environ.get("SOCIALCAL_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    try:
        server = importlib.import_module("socialcal_export.api.server")
    except Exception:
        logger.exception("Failed to import socialcal_export.api.server")
        raise

    cfg = _apply_cli_overrides(server._build_default_config_from_env(), args)

    cfg_level = cfg.get("log_level")
    if isinstance(cfg_level, str):
        logger.info("Applying configured log_level=%s", cfg_level)
        logging.getLogger().setLevel(getattr(logging, cfg_level, logging.INFO))

    # Only surface non-secret keys
    diagnostic_cfg = {
        k: cfg.get(k) for k in ("event_store", "log_level", "server_bind", "server_port")
    }
    logger.debug("Resolved configuration (diagnostic): %s", diagnostic_cfg)

    server.start_server(cfg)
