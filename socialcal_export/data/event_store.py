"""Event store protocol and local implementations.

Stores are read-only from the exporter's point of view: events are fetched
fresh for every export request and never cached or modified here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional, Protocol

from socialcal_export.core.exceptions import EventStoreError

logger = logging.getLogger(__name__)

OWNER_FIELD = "userId"


class EventStore(Protocol):
    """Source of raw calendar events and subscription tokens."""

    name: str

    async def fetch_events(self, user_id: str) -> list[dict[str, Any]]:
        """Return the raw event records owned by a user, in storage order.

        Raises:
            EventStoreError: If the backing store cannot be read
        """
        ...

    async def resolve_subscription_token(self, token: str) -> Optional[str]:
        """Return the user id a subscription token belongs to, or None."""
        ...


def _owned_by(records: Iterable[Mapping[str, Any]], user_id: str) -> list[dict[str, Any]]:
    return [dict(r) for r in records if isinstance(r, Mapping) and r.get(OWNER_FIELD) == user_id]


class InMemoryEventStore:
    """Event store backed by in-process lists, for development and tests."""

    name = "memory"

    def __init__(
        self,
        events: Iterable[Mapping[str, Any]] = (),
        subscriptions: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Create an in-memory store.

        Args:
            events: Raw event records, each carrying a ``userId`` key
            subscriptions: Mapping of subscription token -> user id
        """
        self._events = [dict(e) for e in events]
        self._subscriptions = dict(subscriptions or {})

    async def fetch_events(self, user_id: str) -> list[dict[str, Any]]:
        return _owned_by(self._events, user_id)

    async def resolve_subscription_token(self, token: str) -> Optional[str]:
        return self._subscriptions.get(token)


class JsonFileEventStore:
    """Event store backed by a JSON file that is re-read on every request.

    The file format is::

        {"events": [{"id": "...", "userId": "...", ...}],
         "subscriptions": {"<token>": "<user id>"}}
    """

    name = "json"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise EventStoreError(f"Failed to read events file {self._path}: {exc}") from exc

        if not isinstance(data, dict):
            raise EventStoreError(f"Events file {self._path} must contain a JSON object")
        return data

    async def fetch_events(self, user_id: str) -> list[dict[str, Any]]:
        data = await asyncio.to_thread(self._load)
        events = data.get("events") or []
        if not isinstance(events, list):
            raise EventStoreError(f"'events' in {self._path} must be a list")
        return _owned_by(events, user_id)

    async def resolve_subscription_token(self, token: str) -> Optional[str]:
        data = await asyncio.to_thread(self._load)
        subscriptions = data.get("subscriptions") or {}
        if not isinstance(subscriptions, dict):
            logger.warning("'subscriptions' in %s is not an object; ignoring", self._path)
            return None
        user_id = subscriptions.get(token)
        return user_id if isinstance(user_id, str) and user_id else None
