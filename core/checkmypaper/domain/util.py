"""Helpers and utilities."""

from datetime import datetime
from typing import Optional, Union

from dateutil.parser import parse as parse_date
from pytz import UTC


def get_tzaware_utc_now() -> datetime:
    """Generate a datetime for the current moment in UTC."""
    return datetime.now(UTC)


def to_utc(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    """Coerce a serialized or naive timestamp to a UTC-aware datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        value = parse_date(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
