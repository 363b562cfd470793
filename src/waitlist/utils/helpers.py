"""
Helper functions for the waitlist service
"""
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Current time; every timestamp the service writes comes from here."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar date in UTC, used for placement start/end and activity checks."""
    return utc_now().date()
