# =============================================================================
# utils/timestamps.py - Active Directory timestamp formatting
# =============================================================================

from datetime import datetime, timedelta, timezone
from typing import Any

NEVER = "Never"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# FILETIME counts 100ns intervals since 1601-01-01 UTC
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)
FILETIME_NEVER = 0x7FFFFFFFFFFFFFFF


def filetime_to_datetime(filetime: int) -> datetime:
    """Convert a raw FILETIME integer to an aware UTC datetime"""
    return FILETIME_EPOCH + timedelta(microseconds=filetime // 10)


def format_ad_timestamp(value: Any) -> str:
    """
    Format lastLogon / pwdLastSet / lastLogonTimestamp for the report.

    ldap3 hands these back either as datetimes (when the server schema is
    loaded) or as raw FILETIME integers. Zero, the 1601 epoch and the
    "never" sentinel all mean the event has not happened.
    """
    if value is None or value == '' or value == []:
        return NEVER

    if isinstance(value, datetime):
        if value.year <= 1601 or value.year >= 9999:
            return NEVER
        return value.strftime(DATETIME_FORMAT)

    try:
        filetime = int(value)
    except (TypeError, ValueError):
        return str(value)

    if filetime <= 0 or filetime >= FILETIME_NEVER:
        return NEVER

    try:
        return filetime_to_datetime(filetime).strftime(DATETIME_FORMAT)
    except OverflowError:
        return NEVER


def format_generalized_time(value: Any) -> str:
    """Format whenCreated, which is always set on AD objects"""
    if value is None or value == '':
        return "N/A"

    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)

    # Raw GeneralizedTime, e.g. 20240131120000.0Z
    text = str(value).strip()
    try:
        parsed = datetime.strptime(text.split('.')[0].rstrip('Z'), "%Y%m%d%H%M%S")
    except ValueError:
        return text
    return parsed.strftime(DATETIME_FORMAT)
