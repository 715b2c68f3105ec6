"""Timestamps in the restaurant's civil timezone.

Every timestamp is stored as an ISO-8601 string carrying the configured
zone's offset, so string comparison in SQL orders rows chronologically.
That only holds while the offset never changes: the zone must not observe
daylight saving time.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from . import config
from .errors import InvalidArgument

ONE_DAY = timedelta(days=1)


def local_zone() -> ZoneInfo:
    return ZoneInfo(config.TIMEZONE)


def has_fixed_offset(zone_name: str, year: Optional[int] = None) -> bool:
    zone = ZoneInfo(zone_name)
    year = year or datetime.now(zone).year
    offsets = {datetime(year, month, 1, tzinfo=zone).utcoffset() for month in range(1, 13)}
    return len(offsets) == 1


def now() -> datetime:
    return datetime.now(local_zone())


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_zone())
    return value.astimezone(local_zone()).isoformat(timespec="microseconds")


def now_iso() -> str:
    return to_iso(now())


def parse_instant(value: str, field: str = "date") -> datetime:
    """Parse an ISO date or datetime into an aware datetime.

    A bare date means local midnight; naive datetimes are read in the
    configured zone.
    """
    raw = (value or "").strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        if len(raw) == 10:
            return datetime.combine(date.fromisoformat(raw), time.min, tzinfo=local_zone())
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidArgument(f"Invalid {field} format: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=local_zone())
    return parsed


def parse_day_start(value: Optional[str]) -> datetime:
    if not value:
        today = now().date()
        return datetime.combine(today, time.min, tzinfo=local_zone())
    return parse_instant(value)


def day_range(day_start: datetime):
    return to_iso(day_start), to_iso(day_start + ONE_DAY)


def format_display(iso_value: str) -> str:
    parsed = datetime.fromisoformat(iso_value).astimezone(local_zone())
    return parsed.strftime("%d/%m/%Y %H:%M:%S")
