from __future__ import annotations
from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert any datetime to timezone-aware UTC.

    Naive datetimes are treated as UTC (that is how the credential tables
    store them).
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db_utc(dt: datetime) -> datetime:
    """Return a naive UTC datetime for TIMESTAMP WITHOUT TIME ZONE columns."""
    return to_utc(dt).replace(tzinfo=None)


def now_db_utc() -> datetime:
    return to_db_utc(now_utc())


def iso_utc(dt: datetime | None = None) -> str | None:
    """ISO-8601 UTC string, or None when no datetime is given."""
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def expires_at_from(expires_in_seconds: int, issued_at: datetime | None = None) -> datetime:
    """Absolute (aware, UTC) expiry for a token issued now with the given lifetime."""
    return (issued_at or now_utc()) + timedelta(seconds=int(expires_in_seconds))


def seconds_until(dt: datetime, now: datetime | None = None) -> float:
    """Seconds between now and dt; negative when dt is in the past."""
    return (to_utc(dt) - (now or now_utc())).total_seconds()
