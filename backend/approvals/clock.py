"""Portal-local time helpers.

Timestamps are stored as UTC; the portal's calendar (``PORTAL_TIMEZONE``)
is only applied when deciding "today" and when rendering ISO strings.
"""
from datetime import date, datetime, timezone

import pytz

from approvals.config import settings


def portal_tz():
    return pytz.timezone(settings.PORTAL_TIMEZONE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def portal_today() -> date:
    return utc_now().astimezone(portal_tz()).date()


def as_utc(value: datetime) -> datetime:
    """SQLite hands timezone columns back naive; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_portal_iso(value: datetime) -> str:
    return as_utc(value).astimezone(portal_tz()).isoformat()
