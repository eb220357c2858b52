"""
Time source for the application.

All persisted instants are timezone-aware UTC.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
