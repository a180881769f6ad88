"""Common utility functions shared by the stores."""
import threading
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

_clock_lock = threading.Lock()
_last_instant: datetime | None = None


def utcnow_monotonic() -> datetime:
    """Return the current UTC time, strictly later than any previous call.

    The wall clock can repeat (coarse resolution) or step backwards, so each
    value is bumped to at least one microsecond past the last one issued in
    this process.
    """
    global _last_instant
    with _clock_lock:
        now = datetime.now(timezone.utc)
        if _last_instant is not None and now <= _last_instant:
            now = _last_instant + timedelta(microseconds=1)
        _last_instant = now
        return now


def new_id() -> str:
    """Generate a fresh record identifier."""
    return str(uuid4())


def normalize_uuid(uuid_string: str) -> str | None:
    """Return the canonical form of a UUID string, or None if malformed."""
    try:
        return str(UUID(uuid_string))
    except (TypeError, ValueError, AttributeError):
        return None


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by backends without time zones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
