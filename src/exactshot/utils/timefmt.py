"""Timestamp parsing and formatting utilities."""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_iso8601(value: str, require_offset: bool = False) -> datetime:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp such as "2025-11-28T13:45:00+08:00" or "...Z"
        require_offset: Reject timestamps without an explicit UTC offset.
            When False, a naive timestamp is interpreted as UTC.

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the value is empty, unparseable, or lacks a required offset
    """
    if not value or not value.strip():
        raise ValueError("Timestamp is empty")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        if require_offset:
            raise ValueError(f"Timestamp has no UTC offset: {value}")
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def to_iso_z(moment: datetime) -> str:
    """Format as ISO 8601 UTC with millisecond precision and a Z suffix.

    Example:
        >>> to_iso_z(datetime(2025, 11, 28, 5, 55, tzinfo=timezone.utc))
        '2025-11-28T05:55:00.000Z'
    """
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def filename_stamp(moment: datetime) -> str:
    """ISO 8601 UTC stamp with ':' and '.' replaced by '-' (filesystem safe)."""
    return to_iso_z(moment).replace(":", "-").replace(".", "-")


def overlay_lines(moment: datetime) -> tuple[str, str]:
    """Date and time lines for the capture overlay, in host local time."""
    local = moment.astimezone()
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M:%S")


def local_to_utc(day: str, clock_time: str, tz_name: str) -> datetime:
    """Combine a date and wall-clock time in a named timezone into UTC.

    Args:
        day: Date as YYYY-MM-DD
        clock_time: Time as HH:MM or HH:MM:SS
        tz_name: IANA timezone name (e.g. "Asia/Hong_Kong")

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the date or time cannot be parsed
        zoneinfo.ZoneInfoNotFoundError: If the timezone is unknown
    """
    local = datetime.combine(
        date.fromisoformat(day),
        time.fromisoformat(clock_time),
        tzinfo=ZoneInfo(tz_name),
    )
    return local.astimezone(timezone.utc)


def format_countdown(seconds: float) -> str:
    """Format a remaining duration as "Xm Ys"."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}m {secs}s"
