"""Calendar subscription tokens.

A subscription token lets an external calendar client poll a user's export
without embedding the user id in the URL. Tokens are SHA-256 digests of the
user id, the creation time and 32 bytes of entropy.
"""

from __future__ import annotations

import hashlib
import re
import secrets
from datetime import datetime

from pydantic import BaseModel, Field

from .timezone_utils import local_naive_to_utc

_TOKEN_PATTERN = re.compile(r"[a-f0-9]{64}", re.IGNORECASE)


class SubscriptionToken(BaseModel):
    """A generated subscription token and the user it belongs to."""

    token: str = Field(..., min_length=64, max_length=64)
    user_id: str = Field(..., min_length=1)
    created_at: str


def generate_subscription_token(user_id: str, now: datetime) -> SubscriptionToken:
    """Generate a new subscription token for a user.

    Args:
        user_id: The user the token grants read access to
        now: Creation time (naive local or aware)

    Returns:
        SubscriptionToken with a 64-character hex token
    """
    created_utc = local_naive_to_utc(now)
    timestamp_ms = int(created_utc.timestamp() * 1000)
    raw_token = f"{user_id}:{timestamp_ms}:{secrets.token_hex(32)}"
    digest = hashlib.sha256(raw_token.encode("utf-8")).hexdigest()
    return SubscriptionToken(
        token=digest,
        user_id=user_id,
        created_at=created_utc.isoformat().replace("+00:00", "Z"),
    )


def is_valid_subscription_token(token: object) -> bool:
    """Check the token format only, not whether the token exists in a store."""
    return isinstance(token, str) and _TOKEN_PATTERN.fullmatch(token) is not None
