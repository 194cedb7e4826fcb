"""Firestore event store using the Firestore REST API over httpx.

Documents come back in Firestore's typed-value encoding. Timestamps are
decoded into FirestoreTimestamp wrappers rather than plain datetimes, so the
export sees them exactly as it would see timestamp objects from any other
client library.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

import httpx
from dateutil import parser as date_parser

from socialcal_export.core.config_manager import DEFAULT_EVENTS_COLLECTION
from socialcal_export.core.exceptions import EventStoreError
from socialcal_export.core.http_client import get_request_headers, get_shared_client

logger = logging.getLogger(__name__)

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
DEFAULT_DATABASE = "(default)"
SUBSCRIPTIONS_COLLECTION = "calendar-subscriptions"
SHARED_CLIENT_ID = "firestore"


class FirestoreTimestamp:
    """A Firestore ``timestampValue`` that converts to a datetime on demand."""

    __slots__ = ("value",)

    def __init__(self, value: str) -> None:
        self.value = value

    def to_datetime(self) -> datetime:
        return date_parser.isoparse(self.value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FirestoreTimestamp) and other.value == self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"FirestoreTimestamp({self.value!r})"


def decode_value(value: Mapping[str, Any]) -> Any:
    """Decode one Firestore typed value into a Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return FirestoreTimestamp(value["timestampValue"])
    if "mapValue" in value:
        fields = value["mapValue"].get("fields") or {}
        return {k: decode_value(v) for k, v in fields.items()}
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values") or []]
    for key in ("stringValue", "referenceValue", "bytesValue"):
        if key in value:
            return value[key]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    logger.debug("Unknown Firestore value type: %s", list(value))
    return None


def decode_document(document: Mapping[str, Any]) -> dict[str, Any]:
    """Decode a Firestore document into a flat record.

    The document id (last segment of the resource name) becomes ``id``,
    unless the stored fields carry their own ``id``.
    """
    record: dict[str, Any] = {}
    name = document.get("name")
    if isinstance(name, str) and name:
        record["id"] = name.rsplit("/", 1)[-1]
    for key, raw in (document.get("fields") or {}).items():
        record[key] = decode_value(raw)
    return record


class FirestoreEventStore:
    """Event store that queries a Firestore collection by owner id."""

    name = "firestore"

    def __init__(
        self,
        project_id: str,
        *,
        api_key: Optional[str] = None,
        collection: str = DEFAULT_EVENTS_COLLECTION,
        subscriptions_collection: str = SUBSCRIPTIONS_COLLECTION,
        timeout: Optional[float] = None,
        database: str = DEFAULT_DATABASE,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = FIRESTORE_BASE_URL,
    ) -> None:
        """Create a Firestore store.

        Args:
            project_id: Google Cloud project id
            api_key: Optional web API key appended as ``key`` query parameter
            collection: Collection holding calendar events
            subscriptions_collection: Collection holding subscription tokens
            timeout: Request timeout in seconds for the shared client
            database: Firestore database id
            client: Optional httpx client (defaults to the shared client)
            base_url: Firestore REST base URL
        """
        if not project_id:
            raise ValueError("project_id is required for FirestoreEventStore")
        self.project_id = project_id
        self.api_key = api_key
        self.collection = collection
        self.subscriptions_collection = subscriptions_collection
        self.timeout = timeout
        self.database = database
        self._client = client
        self.base_url = base_url.rstrip("/")

    @property
    def query_url(self) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}/databases/{self.database}"
            "/documents:runQuery"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        timeout = httpx.Timeout(self.timeout) if self.timeout else None
        return await get_shared_client(SHARED_CLIENT_ID, timeout=timeout)

    async def _run_query(self, collection: str, field: str, value: str) -> list[dict[str, Any]]:
        body = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": field},
                        "op": "EQUAL",
                        "value": {"stringValue": value},
                    }
                },
            }
        }
        params = {"key": self.api_key} if self.api_key else None
        client = await self._get_client()

        try:
            response = await client.post(
                self.query_url,
                json=body,
                params=params,
                headers=get_request_headers(),
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise EventStoreError(
                f"Firestore query on {collection} failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise EventStoreError(f"Firestore request failed: {exc}") from exc
        except ValueError as exc:
            raise EventStoreError(f"Firestore returned invalid JSON: {exc}") from exc

        if not isinstance(payload, list):
            raise EventStoreError("Firestore runQuery response must be a JSON array")

        # Entries without a document only carry readTime/skippedResults
        return [
            decode_document(entry["document"])
            for entry in payload
            if isinstance(entry, Mapping) and isinstance(entry.get("document"), Mapping)
        ]

    async def fetch_events(self, user_id: str) -> list[dict[str, Any]]:
        records = await self._run_query(self.collection, "userId", user_id)
        logger.debug("Fetched %d events for user %s from Firestore", len(records), user_id)
        return records

    async def resolve_subscription_token(self, token: str) -> Optional[str]:
        records = await self._run_query(self.subscriptions_collection, "token", token)
        for record in records:
            user_id = record.get("userId")
            if isinstance(user_id, str) and user_id:
                return user_id
        return None
