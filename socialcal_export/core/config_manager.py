"""Configuration management for socialcal_export server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_EVENTS_COLLECTION = "calendar-events"
DEFAULT_SERVER_PORT = 8080
EVENT_STORE_KINDS = ("memory", "json", "firestore")


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        parsed = parse_env_file(self.env_file_path)

        set_keys = []
        for key, val in parsed.items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - SOCIALCAL_WEB_HOST or SOCIALCAL_SERVER_BIND -> 'server_bind'
        - SOCIALCAL_WEB_PORT or SOCIALCAL_SERVER_PORT -> 'server_port' (int)
        - SOCIALCAL_EVENT_STORE -> 'event_store' (memory, json or firestore)
        - SOCIALCAL_EVENTS_FILE -> 'events_file'
        - SOCIALCAL_FIRESTORE_PROJECT -> 'firestore_project'
        - SOCIALCAL_FIRESTORE_API_KEY -> 'firestore_api_key'
        - SOCIALCAL_EVENTS_COLLECTION -> 'events_collection'
        - SOCIALCAL_REQUEST_TIMEOUT -> 'request_timeout' (float seconds)
        - SOCIALCAL_DEBUG -> 'debug_logging' (bool)
        - SOCIALCAL_LOG_LEVEL -> 'log_level'

        Returns:
            Configuration dictionary compatible with start_server
        """
        cfg: dict[str, Any] = {}

        host = os.environ.get("SOCIALCAL_WEB_HOST") or os.environ.get("SOCIALCAL_SERVER_BIND")
        if host:
            cfg["server_bind"] = host

        port = os.environ.get("SOCIALCAL_WEB_PORT") or os.environ.get("SOCIALCAL_SERVER_PORT")
        if port:
            try:
                cfg["server_port"] = int(port)
            except ValueError:
                logger.warning("Invalid SOCIALCAL_WEB_PORT=%r; ignoring", port)

        store_kind = os.environ.get("SOCIALCAL_EVENT_STORE")
        if store_kind:
            normalized = store_kind.strip().lower()
            if normalized in EVENT_STORE_KINDS:
                cfg["event_store"] = normalized
            else:
                logger.warning("Unknown SOCIALCAL_EVENT_STORE=%r; ignoring", store_kind)

        events_file = os.environ.get("SOCIALCAL_EVENTS_FILE")
        if events_file:
            cfg["events_file"] = events_file

        project = os.environ.get("SOCIALCAL_FIRESTORE_PROJECT")
        if project:
            cfg["firestore_project"] = project

        api_key = os.environ.get("SOCIALCAL_FIRESTORE_API_KEY")
        if api_key:
            cfg["firestore_api_key"] = api_key

        cfg["events_collection"] = (
            os.environ.get("SOCIALCAL_EVENTS_COLLECTION") or DEFAULT_EVENTS_COLLECTION
        )

        timeout = os.environ.get("SOCIALCAL_REQUEST_TIMEOUT")
        if timeout:
            try:
                cfg["request_timeout"] = float(timeout)
            except ValueError:
                logger.warning("Invalid SOCIALCAL_REQUEST_TIMEOUT=%r; ignoring", timeout)

        debug = os.environ.get("SOCIALCAL_DEBUG", "")
        if debug:
            cfg["debug_logging"] = debug.strip().lower() in ("1", "true", "yes", "on")

        log_level = os.environ.get("SOCIALCAL_LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level.upper()

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
