"""Time source shared by domain services."""

from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(UTC)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from storage."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
