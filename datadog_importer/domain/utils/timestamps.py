"""
Timestamp parsing and conversion utilities.

Provides utilities for parsing ISO8601 timestamps coming from pipeline input
rows and converting between datetimes, Unix seconds and the epoch
milliseconds used by Datadog point lists.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[Union[str, int, float, datetime]]) -> Optional[datetime]:
    """
    Parse a timestamp from various formats.

    Supports:
    - ISO8601 strings (with or without 'Z' suffix)
    - ``datetime`` instances (naive values are taken as UTC)
    - Unix timestamps in seconds (< 10000000000)
    - Unix timestamps in milliseconds (≥ 10000000000)

    Parameters
    ----------
    value : str, int, float, datetime or None
        The timestamp to parse

    Returns
    -------
    datetime or None
        Parsed datetime in UTC, or None if parsing fails

    Examples
    --------
    >>> parse_timestamp("2024-06-10T05:00:00.000Z")
    datetime.datetime(2024, 6, 10, 5, 0, tzinfo=datetime.timezone.utc)
    >>> parse_timestamp(1717995600000)
    datetime.datetime(2024, 6, 10, 5, 0, tzinfo=datetime.timezone.utc)
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    if isinstance(value, str):
        return _parse_iso8601(value)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _parse_unix_timestamp(value)

    return None


def _parse_iso8601(value: str) -> Optional[datetime]:
    """
    Parse an ISO8601 timestamp string.

    Handles trailing 'Z' by converting to '+00:00'.
    """
    if not value:
        return None

    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"

        dt = datetime.fromisoformat(value)

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)

        return dt
    except (ValueError, TypeError):
        logger.warning(
            "timestamps.parse_iso8601_failed",
            extra={"value": value, "error": "invalid format"},
        )
        return None


def _parse_unix_timestamp(value: Union[int, float]) -> Optional[datetime]:
    """
    Parse a Unix timestamp (seconds or milliseconds since epoch).

    Values ≥ 10000000000 are treated as milliseconds.
    """
    try:
        if value >= 10000000000:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (ValueError, TypeError, OSError):
        logger.warning(
            "timestamps.parse_unix_failed",
            extra={"value": value, "error": "invalid timestamp"},
        )
        return None


def to_epoch_seconds(dt: datetime) -> int:
    """
    Convert a datetime to whole Unix seconds, rounding down.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> to_epoch_seconds(datetime(2024, 6, 10, 5, 0, 0, 900000, tzinfo=timezone.utc))
    1717995600
    """
    return math.floor(dt.timestamp())


def to_epoch_millis(dt: datetime) -> int:
    """Convert a datetime to Unix milliseconds."""
    return round(dt.timestamp() * 1000)


def millis_to_iso8601(timestamp_ms: Union[int, float]) -> str:
    """
    Render epoch milliseconds as an ISO8601 UTC string with millisecond
    precision and a 'Z' suffix.

    Examples
    --------
    >>> millis_to_iso8601(1717995610000)
    '2024-06-10T05:00:10.000Z'
    """
    whole_ms = int(timestamp_ms)
    seconds, millis = divmod(whole_ms, 1000)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"
