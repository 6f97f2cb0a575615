"""UTC datetime utilities."""

from datetime import datetime, timezone


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps coming back from the wire or the DB."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
