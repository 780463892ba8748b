"""
Clock source for the engine.
All persisted timestamps are naive UTC, matching the DateTime columns.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current instant as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an aware datetime to naive UTC. Naive input is assumed to be UTC already; None passes through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
