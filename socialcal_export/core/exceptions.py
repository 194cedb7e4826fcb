"""Custom exception hierarchy for calendar export errors.

These exception types let the HTTP layer map failures onto the right
response shape: input errors become plain-text 400 responses, while every
other failure still produces a parseable calendar body.
"""


class CalendarExportError(Exception):
    """Base exception for all calendar export errors."""


class MissingUserIdError(CalendarExportError):
    """The request did not identify a user.

    Should result in HTTP 400 Bad Request response.
    """


class InvalidSubscriptionTokenError(CalendarExportError):
    """A subscription token does not have the expected format.

    Should result in HTTP 400 Bad Request response.
    """


class EventStoreError(CalendarExportError):
    """The event store could not supply the raw events for a user.

    Raised when:
    - The backing document store returns an HTTP error
    - The store payload cannot be decoded
    - A local events file is missing or malformed

    Should result in HTTP 500 with a header-only calendar body.
    """


class CalendarSerializationError(CalendarExportError):
    """The mapped events could not be rendered as an iCalendar document."""
