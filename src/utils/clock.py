"""Time helpers shared by the session, quiz and battle managers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

# Injected into managers so tests can pin "now"
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO 8601, passing None through."""
    return value.isoformat() if value is not None else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp, passing None through."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
