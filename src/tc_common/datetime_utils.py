"""UTC datetime utilities."""

from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def hours_from(start: datetime, hours: int) -> datetime:
    return start + timedelta(hours=hours)


def day_key(ts: datetime) -> str:
    """Bucket a timestamp into its UTC calendar day: '2026-03-01'."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date().isoformat()


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO8601 date or datetime; naive values are taken as UTC."""
    if not value:
        return None
    if len(value) == 10:
        d = date.fromisoformat(value)
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
