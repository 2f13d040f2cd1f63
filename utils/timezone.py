# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Timezone utilities for working with the parish's local calendar
"""
from datetime import datetime
from typing import Optional, Union

import pytz

import config


def get_timezone(tz: Union[str, pytz.BaseTzInfo, None] = None) -> pytz.BaseTzInfo:
    """Resolve a timezone name (or an existing pytz zone) to a pytz zone"""
    if tz is None:
        return pytz.timezone(config.TIMEZONE)
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def get_local_time(tz: Union[str, pytz.BaseTzInfo, None] = None) -> datetime:
    """Get current time in the configured local timezone"""
    return datetime.now(get_timezone(tz))


def localize_first(naive_dt: datetime, tz: pytz.BaseTzInfo) -> Optional[datetime]:
    """
    Attach a timezone to a naive wall-clock time.

    Returns None when the wall-clock time does not exist (spring-forward gap).
    When the wall-clock time happens twice (fall-back), the earlier instant is
    returned.
    """
    try:
        return tz.localize(naive_dt, is_dst=None)
    except pytz.exceptions.NonExistentTimeError:
        return None
    except pytz.exceptions.AmbiguousTimeError:
        first = tz.localize(naive_dt, is_dst=True)
        second = tz.localize(naive_dt, is_dst=False)
        return min(first, second, key=lambda dt: dt.astimezone(pytz.UTC))


def ensure_aware(dt: datetime, name: str = 'instant') -> datetime:
    """Reject naive datetimes - an instant must carry its offset"""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError(f"{name} must be timezone-aware")
    return dt


def parse_iso_instant(iso_string: str, tz: Union[str, pytz.BaseTzInfo, None] = None) -> datetime:
    """
    Parse an ISO 8601 string into an aware datetime.

    A trailing 'Z' is read as UTC; strings without an offset are taken as
    local wall-clock time in the configured timezone.
    """
    if iso_string.endswith('Z'):
        iso_string = iso_string[:-1] + '+00:00'

    parsed = datetime.fromisoformat(iso_string)
    if parsed.tzinfo is not None:
        return parsed

    zone = get_timezone(tz)
    localized = localize_first(parsed, zone)
    if localized is None:
        raise ValueError(f"{iso_string} does not exist in {zone.zone}")
    return localized


def format_local_time(dt: Optional[datetime], tz: Union[str, pytz.BaseTzInfo, None] = None,
                      include_timezone: bool = True) -> str:
    """Format datetime in local time for display"""
    if dt is None:
        return "Never"

    zone = get_timezone(tz)
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    local_dt = dt.astimezone(zone)

    if include_timezone:
        return local_dt.strftime('%b %d, %Y at %I:%M %p %Z')
    return local_dt.strftime('%b %d, %Y at %I:%M %p')
