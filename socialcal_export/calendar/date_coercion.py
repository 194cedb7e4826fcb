"""Coercion of loosely-typed stored date values into local instants.

Stored events reach the exporter with dates in whatever shape the writing
client produced. Every raw value is first classified into a closed set of
variants and then resolved by a single dispatch function that always yields
an instant: either the parsed value or the caller-supplied fallback.
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from functools import singledispatch
from typing import Any, Optional, Union

from dateutil import parser as date_parser

from socialcal_export.core.timezone_utils import to_local_naive

logger = logging.getLogger(__name__)

# Method names exposed by timestamp wrapper types (Firestore, protobuf, pandas, JS-style)
CONVERSION_METHODS = ("to_datetime", "ToDatetime", "to_pydatetime", "toDate")


@dataclass(frozen=True)
class WrappedInstant:
    """A value that knows how to turn itself into a point in time."""

    value: Any


@dataclass(frozen=True)
class TextInstant:
    """A value to be parsed generically from its text form."""

    text: str


@dataclass(frozen=True)
class NumericInstant:
    """Epoch time in milliseconds."""

    millis: float


@dataclass(frozen=True)
class Missing:
    """No value was stored."""


DateValue = Union[WrappedInstant, TextInstant, NumericInstant, Missing]


@dataclass(frozen=True)
class CoercionResult:
    """Outcome of coercing one raw date value."""

    instant: datetime
    used_fallback: bool = False
    reason: Optional[str] = None


def _has_epoch_seconds(value: Mapping[Any, Any]) -> bool:
    return "seconds" in value or "_seconds" in value


def classify_date_value(value: Any) -> DateValue:
    """Classify a raw stored date value into its variant.

    Args:
        value: Raw value from the event record

    Returns:
        One of WrappedInstant, TextInstant, NumericInstant or Missing
    """
    if value is None:
        return Missing()
    if isinstance(value, (datetime, date)):
        return WrappedInstant(value)
    if isinstance(value, Mapping):
        if _has_epoch_seconds(value):
            return WrappedInstant(value)
        return TextInstant(str(value))
    if any(callable(getattr(value, name, None)) for name in CONVERSION_METHODS):
        return WrappedInstant(value)
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return NumericInstant(float(value))
    if isinstance(value, str):
        return TextInstant(value)
    return TextInstant(str(value))


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise ValueError(f"conversion produced {type(value).__name__}, not a datetime")


def _from_epoch_seconds(seconds: float) -> datetime:
    if not math.isfinite(seconds):
        raise ValueError(f"non-finite epoch value: {seconds!r}")
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


@singledispatch
def _resolve(variant: Any) -> datetime:
    raise TypeError(f"unsupported date variant: {type(variant).__name__}")


@_resolve.register
def _(variant: WrappedInstant) -> datetime:
    value = variant.value
    if isinstance(value, (datetime, date)):
        return _as_datetime(value)
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        return _from_epoch_seconds(float(seconds) + float(nanos) / 1e9)
    for name in CONVERSION_METHODS:
        convert = getattr(value, name, None)
        if callable(convert):
            return _as_datetime(convert())
    raise ValueError("wrapped value has no conversion method")


@_resolve.register
def _(variant: TextInstant) -> datetime:
    text = variant.text.strip()
    if not text:
        raise ValueError("empty date string")
    try:
        return date_parser.isoparse(text)
    except ValueError:
        return date_parser.parse(text)


@_resolve.register
def _(variant: NumericInstant) -> datetime:
    return _from_epoch_seconds(variant.millis / 1000.0)


def coerce_instant(value: Any, fallback: datetime) -> CoercionResult:
    """Coerce a raw stored date value into a naive local datetime.

    Never raises: absent values, parse failures and conversion errors all
    yield ``fallback`` with ``used_fallback`` set.

    Args:
        value: Raw value from the event record
        fallback: Instant to use when the value cannot be resolved

    Returns:
        CoercionResult with the resolved or fallback instant
    """
    variant = classify_date_value(value)
    if isinstance(variant, Missing):
        return CoercionResult(fallback, used_fallback=True, reason="missing")

    try:
        instant = to_local_naive(_resolve(variant))
    # Conversion hooks on wrapper objects are arbitrary code
    except Exception as exc:
        logger.debug("Date value %r could not be coerced: %s", value, exc)
        return CoercionResult(fallback, used_fallback=True, reason=f"unparsable: {exc}")

    return CoercionResult(instant)
