"""
Date helpers. Entry dates are plain ``YYYY-MM-DD`` strings; "today" is
resolved in the site's timezone so late-evening entries don't land on
the previous UTC day.
"""

import logging
import re

import pandas as pd

from .config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_MONTH = re.compile(r"^\d{4}-\d{2}$")


def today_iso(tz: str = DEFAULT_TIMEZONE) -> str:
    """Return today's date as YYYY-MM-DD in the given timezone."""
    return pd.Timestamp.now(tz=tz).strftime("%Y-%m-%d")


def current_month_iso(tz: str = DEFAULT_TIMEZONE) -> str:
    """Return the current month key (YYYY-MM) in the given timezone."""
    return today_iso(tz)[:7]


def utc_now_iso() -> str:
    """UTC timestamp in the ``2025-01-05T08:30:00.000Z`` form used by the sheet."""
    return pd.Timestamp.now(tz="UTC").strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def is_valid_iso_date(value: str) -> bool:
    return bool(_ISO_DATE.match(value or ""))


def is_valid_month_key(value: str) -> bool:
    return bool(_ISO_MONTH.match(value or ""))


def normalise_date(value: str) -> str:
    """Strip any time component, keeping only the date part."""
    return (value or "").split("T")[0].strip()


def format_display_date(value: str) -> str:
    """Format YYYY-MM-DD for display, e.g. ``2025-12-25 THURSDAY``.

    Returns the bare date when it can't be parsed.
    """
    if not value:
        return "Invalid Date"

    clean = normalise_date(value)
    try:
        day_name = pd.Timestamp(clean).day_name().upper()
    except (ValueError, TypeError):
        logger.warning("Could not parse date value: %s", value)
        return clean
    return f"{clean} {day_name}"
