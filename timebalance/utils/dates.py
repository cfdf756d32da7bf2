"""Date and time-of-day helpers."""
import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_of_day(value: str) -> int:
    """
    Parse a local ``HH:MM`` time of day into minutes after midnight.

    Args:
        value: Time string such as ``"08:30"``

    Returns:
        Minutes after midnight

    Raises:
        ValueError: If the string is not a valid 24h time

    Example:
        >>> parse_time_of_day("08:30")
        510
    """
    match = _TIME_OF_DAY.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")

    return hours * 60 + minutes


def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA time zone name, raising ValueError for unknown names."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown time zone: {tz_name}")


def local_day_bounds(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """
    Get the UTC boundaries of a local calendar day.

    The range is half-open: ``start <= t < end``. Both bounds are naive UTC
    datetimes, matching how Motor returns stored timestamps.

    Args:
        day: Local calendar date
        tz_name: IANA time zone name, e.g. ``"Europe/Berlin"``

    Returns:
        Tuple of (start, end) in naive UTC
    """
    zone = get_zone(tz_name)
    start_local = datetime.combine(day, time.min, tzinfo=zone)
    end_local = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)

    return (
        start_local.astimezone(timezone.utc).replace(tzinfo=None),
        end_local.astimezone(timezone.utc).replace(tzinfo=None),
    )


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
