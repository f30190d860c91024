"""
Utility functions for the message board.
"""

import hashlib
from datetime import datetime, timezone


def hash_client_id(client_id: str) -> str:
    """
    Hash a client identifier for storage.

    Args:
        client_id: Opaque submitter key (usually the peer address)

    Returns:
        Hex-encoded SHA-256 digest
    """
    return hashlib.sha256(client_id.encode("utf-8")).hexdigest()


def format_timestamp(value: datetime) -> str:
    """
    Format a datetime as ISO-8601 UTC with millisecond precision and Z suffix.

    Naive datetimes are treated as UTC (SQLite drops tzinfo on read).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def utc_now() -> datetime:
    """Current server time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
