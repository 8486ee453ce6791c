from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time (timezone-aware).

    Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes read back from the database as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
