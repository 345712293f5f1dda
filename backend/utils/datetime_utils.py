"""
Datetime utilities for consistent timezone handling across the application.
All times are stored as naive UTC and serialized with an explicit offset.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Return current UTC time in timezone-aware format"""
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Return current UTC timestamp as ISO string"""
    return utc_now().isoformat()


def db_now() -> datetime:
    """Current UTC time in the naive form stored in the database"""
    return utc_now().replace(tzinfo=None)


def parse_datetime(dt_string: Optional[str]) -> Optional[datetime]:
    """Parse ISO datetime string to timezone-aware datetime object"""
    if not dt_string:
        return None

    try:
        # Handle both with and without timezone info
        if dt_string.endswith('Z'):
            dt_string = dt_string[:-1] + '+00:00'

        try:
            dt = datetime.fromisoformat(dt_string)
        except ValueError:
            dt = date_parser.isoparse(dt_string)

        # If naive datetime, assume UTC
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)

        return dt
    except (ValueError, TypeError):
        return None


def parse_date(date_string: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD calendar date"""
    if not date_string:
        return None
    try:
        return date.fromisoformat(date_string[:10])
    except (ValueError, TypeError):
        return None


def to_utc(dt: datetime) -> datetime:
    """Convert any datetime to UTC"""
    if dt.tzinfo is None:
        # Naive datetime, assume UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert any datetime to the naive UTC form stored in the database"""
    if dt is None:
        return None
    return to_utc(dt).replace(tzinfo=None)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Naive UTC [start, end) range covering a calendar day"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def iso(dt) -> Optional[str]:
    """Serialize a stored datetime or date for JSON responses"""
    if dt is None:
        return None
    if isinstance(dt, datetime):
        return to_utc(dt).isoformat()
    return dt.isoformat()
