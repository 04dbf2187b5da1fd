from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current time in UTC; all timestamps are stored in UTC."""
    return datetime.now(timezone.utc)


def to_utc(value: Optional[datetime]) -> datetime:
    """Normalize to aware UTC; None means now, naive values are taken as UTC."""
    if value is None:
        return utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
