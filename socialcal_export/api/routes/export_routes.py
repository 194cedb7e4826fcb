"""Calendar export routes for socialcal_export.

Every response to a calendar request carries a parseable iCalendar body,
including failures: external calendar clients treat anything else as a
corrupt subscription. Only a request that does not identify a user gets a
plain-text error.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable

from aiohttp import web

from socialcal_export.calendar.assembler import MINIMAL_CALENDAR
from socialcal_export.core.exceptions import InvalidSubscriptionTokenError, MissingUserIdError
from socialcal_export.core.subscription_tokens import is_valid_subscription_token
from socialcal_export.data.event_store import EventStore
from socialcal_export.domain.export_pipeline import compile_calendar

logger = logging.getLogger(__name__)

CALENDAR_CONTENT_TYPE = "text/calendar"
NO_STORE_CACHE_CONTROL = "no-store, max-age=0, must-revalidate"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _filename_part(user_id: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", user_id) or "unknown"


def calendar_response(user_id: str, body: str) -> web.Response:
    """Build the successful calendar download response."""
    return web.Response(
        text=body,
        status=200,
        content_type=CALENDAR_CONTENT_TYPE,
        charset="utf-8",
        headers={
            "Content-Disposition": (
                f'attachment; filename="content-calendar-{_filename_part(user_id)}.ics"'
            ),
            "Cache-Control": NO_STORE_CACHE_CONTROL,
        },
    )


def error_calendar_response(user_id: str, body: str = MINIMAL_CALENDAR) -> web.Response:
    """Build a 500 response that still carries a header-only calendar."""
    return web.Response(
        text=body,
        status=500,
        content_type=CALENDAR_CONTENT_TYPE,
        charset="utf-8",
        headers={
            "Content-Disposition": (
                f'attachment; filename="error-calendar-{_filename_part(user_id)}.ics"'
            ),
        },
    )


def _plain_text(message: str, status: int) -> web.Response:
    return web.Response(text=message, status=status, content_type="text/plain")


def _require_user_id(request: web.Request) -> str:
    user_id = (request.match_info.get("user_id") or "").strip()
    if not user_id:
        raise MissingUserIdError("User ID is required")
    return user_id


def _require_token(request: web.Request) -> str:
    token = (request.match_info.get("token") or "").strip()
    if not is_valid_subscription_token(token):
        raise InvalidSubscriptionTokenError("Invalid subscription token")
    return token.lower()


def register_export_routes(
    app: web.Application,
    event_store: EventStore,
    time_provider: Callable[[], datetime],
) -> None:
    """Register calendar export routes.

    Args:
        app: aiohttp web application
        event_store: Source of raw events and subscription tokens
        time_provider: Returns the export-time "now" as naive local time
    """

    async def export_for_user(user_id: str) -> web.Response:
        try:
            raw_events = await event_store.fetch_events(user_id)
            export = compile_calendar(raw_events, time_provider(), user_id=user_id)
        except Exception:
            logger.exception("ICS export: unhandled exception for user %s", user_id)
            return error_calendar_response(user_id)

        if export.is_error:
            return error_calendar_response(user_id, export.body)
        return calendar_response(user_id, export.body)

    async def export_calendar(request: web.Request) -> web.Response:
        """Export a user's calendar events as an .ics download."""
        try:
            user_id = _require_user_id(request)
        except MissingUserIdError as exc:
            logger.warning("ICS export: user id missing in request")
            return _plain_text(str(exc), 400)

        return await export_for_user(user_id)

    async def export_subscription(request: web.Request) -> web.Response:
        """Export the calendar of the user a subscription token belongs to."""
        try:
            token = _require_token(request)
        except InvalidSubscriptionTokenError as exc:
            logger.warning("ICS export: malformed subscription token")
            return _plain_text(str(exc), 400)

        try:
            user_id = await event_store.resolve_subscription_token(token)
        except Exception:
            logger.exception("ICS export: failed to resolve subscription token")
            return error_calendar_response("unknown")

        if not user_id:
            return _plain_text("Subscription not found", 404)

        return await export_for_user(user_id)

    app.router.add_get(
        "/api/calendar/subscriptions/{token}/export.ics", export_subscription
    )
    # Empty ids must reach the handler so they get a 400 rather than a 404
    app.router.add_get("/api/calendar/{user_id:[^{}/]*}/export.ics", export_calendar)
