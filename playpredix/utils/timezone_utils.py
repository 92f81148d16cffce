"""
Timezone utility functions for the PlayPredix application
"""

from datetime import datetime, timezone

import pytz
from flask import current_app, has_app_context


def get_app_timezone():
    """Get the application's configured timezone"""
    timezone_name = "UTC"
    if has_app_context():
        timezone_name = current_app.config.get("TIMEZONE", "UTC")
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def get_utc_time():
    """Get current time in UTC"""
    return datetime.now(timezone.utc)


def ensure_utc(dt):
    """Return an aware UTC datetime. Naive values are taken to be UTC."""
    if dt is None:
        return None

    # SQLite hands back naive datetimes
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def naive_utc(dt):
    """UTC wall-clock without tzinfo, the form lock times are stored in"""
    if dt is None:
        return None
    return ensure_utc(dt).replace(tzinfo=None)


def convert_to_app_timezone(dt):
    """Convert a datetime to the application's timezone"""
    if dt is None:
        return None

    return ensure_utc(dt).astimezone(get_app_timezone())


def isoformat_utc(dt):
    """ISO-8601 string in UTC for API responses"""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def is_past(lock_time, now=None):
    """True once now has reached lock_time (inclusive)"""
    if lock_time is None:
        return False
    now = ensure_utc(now) if now is not None else get_utc_time()
    return now >= ensure_utc(lock_time)


def format_lock_time(dt, format_str="%a %m/%d at %I:%M %p"):
    """Format a lock time in the application's timezone"""
    local_dt = convert_to_app_timezone(dt)
    if local_dt is None:
        return "TBD"
    return local_dt.strftime(format_str)
