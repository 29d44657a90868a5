from datetime import UTC, date, datetime, time, timedelta


def utcnow() -> datetime:
    """Returns the current UTC time as a naive datetime, the storage convention for all samples."""
    return datetime.now(UTC).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Returns the inclusive [00:00:00, 23:59:59] window of a calendar day."""
    return datetime.combine(day, time.min), datetime.combine(day, time(23, 59, 59))


def days_ago(days: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)


def to_iso(dt: datetime) -> str:
    """Renders a naive UTC datetime as ISO-8601 with an explicit offset."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.isoformat(timespec='seconds')


def to_display(dt: datetime) -> str:
    return dt.strftime('%Y-%m-%d %H:%M:%S')
