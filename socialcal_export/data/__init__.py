"""Event store implementations and the factory that picks one from config."""

from __future__ import annotations

import logging
from typing import Any

from socialcal_export.core.config_manager import DEFAULT_EVENTS_COLLECTION, get_config_value

from .event_store import EventStore, InMemoryEventStore, JsonFileEventStore
from .firestore_store import FirestoreEventStore, FirestoreTimestamp

logger = logging.getLogger(__name__)

__all__ = [
    "EventStore",
    "FirestoreEventStore",
    "FirestoreTimestamp",
    "InMemoryEventStore",
    "JsonFileEventStore",
    "build_event_store",
]


def build_event_store(config: Any) -> EventStore:
    """Create the event store named by ``event_store`` in config.

    Falls back to a JSON store when ``events_file`` is set, to Firestore when
    ``firestore_project`` is set, and to an empty in-memory store otherwise.

    Raises:
        ValueError: If the selected store is missing its required settings
    """
    kind = get_config_value(config, "event_store")
    events_file = get_config_value(config, "events_file")
    project = get_config_value(config, "firestore_project")

    if kind is None:
        kind = "json" if events_file else "firestore" if project else "memory"

    if kind == "json":
        if not events_file:
            raise ValueError("event_store=json requires events_file")
        logger.info("Using JSON file event store at %s", events_file)
        return JsonFileEventStore(events_file)

    if kind == "firestore":
        if not project:
            raise ValueError("event_store=firestore requires firestore_project")
        logger.info("Using Firestore event store for project %s", project)
        return FirestoreEventStore(
            project,
            api_key=get_config_value(config, "firestore_api_key"),
            collection=get_config_value(config, "events_collection") or DEFAULT_EVENTS_COLLECTION,
            timeout=get_config_value(config, "request_timeout"),
        )

    logger.warning("Using empty in-memory event store; every export will be empty")
    return InMemoryEventStore()
