from datetime import date, datetime, timedelta
from typing import Any, Tuple

from dateutil.parser import isoparse


def parse_iso_datetime(value: Any) -> datetime:
    """Parse an ISO-8601 string into a naive datetime in server local time.

    Offsets (``Z``, ``+05:30``) are converted to local time first so the
    calendar day is always judged on the server's clock.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = isoparse(value.strip())
        except (ValueError, OverflowError) as exc:
            raise ValueError("Valid date is required") from exc
    else:
        raise ValueError("Valid date is required")

    if dt.tzinfo is not None:
        try:
            dt = dt.astimezone().replace(tzinfo=None)
        except (ValueError, OverflowError) as exc:
            raise ValueError("Valid date is required") from exc

    # The last representable day has no following midnight to bound it
    if dt.date() == date.max:
        raise ValueError("Valid date is required")
    return dt


def start_of_day(dt: datetime) -> datetime:
    """00:00:00.000 of the given day."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    """23:59:59.999 of the given day."""
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)


def day_bucket(dt: datetime) -> Tuple[datetime, datetime]:
    """Half-open [start, start + 24h) window covering the day of ``dt``."""
    start = start_of_day(dt)
    return start, start + timedelta(days=1)
