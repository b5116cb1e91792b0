"""
Date parsing utilities for flexible date format handling.

Exports from different back-office systems disagree on date layout
("03/04/2025", "2025-03-04", "Mar 4 2025 2:30 PM"). These helpers parse
whatever a cell holds into ``date`` / ``datetime`` values, return None for
anything unparseable, and derive due-date urgency.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional, Tuple

import pandas as pd

from inspectsync.core.config import settings

logger = logging.getLogger(__name__)

FAILED_SAMPLE_LIMIT = 5
SUPPRESSION_NOTICE_EVERY = 100

_failure_stats: dict = {}

_NUMERIC_DATE_RE = re.compile(r'^\d{1,2}[/-]\d{1,2}[/-]\d{2,4}')
_TIME_RE = re.compile(
    r'(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?(?::\d{2})?\s*(?P<meridiem>[ap]\.?\s?m\.?)?',
    re.IGNORECASE,
)
_TIME_ONLY_RE = re.compile(r'^\s*' + _TIME_RE.pattern + r'\s*$', re.IGNORECASE)
_EMBEDDED_TIME_RE = re.compile(r'\d{1,2}:\d{2}|\d\s*[ap]\.?\s?m\b', re.IGNORECASE)


def _record_parse_failure(value: Any, context: Optional[str], error: Exception) -> None:
    """
    Collect failure stats and emit limited logs (sampled warnings + periodic summaries).
    """
    key = context or "default"
    stats = _failure_stats.setdefault(key, {"count": 0, "samples": []})
    stats["count"] += 1
    count = stats["count"]

    if len(stats["samples"]) < FAILED_SAMPLE_LIMIT:
        stats["samples"].append(value)
        logger.warning("Failed to parse date%s value '%s': %s", f" ({key})" if context else "", value, error)
        return

    if count == FAILED_SAMPLE_LIMIT + 1 or count % SUPPRESSION_NOTICE_EVERY == 0:
        logger.info(
            "Suppressed additional date parse warnings after %d failures%s; sample values=%s",
            count,
            f" ({key})" if context else "",
            stats["samples"],
        )


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def parse_flexible_datetime(
    value: Any,
    *,
    log_context: Optional[str] = None,
    log_failures: bool = True,
) -> Optional[datetime]:
    """
    Parse a date or date-time value from various formats.

    Numeric dates like ``04/03/2025`` are read month-first unless the first
    component can only be a day (``20/10/2025``) or the
    ``date_default_dayfirst`` setting says otherwise; the alternate reading is
    always tried as a fallback before letting pandas infer the format.

    Returns:
        A naive ``datetime`` in the wall-clock time written in the export, or
        None when the value is blank or cannot be parsed.
    """
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, str):
        value = value.strip()

    parse_attempts = []

    if isinstance(value, str):
        numeric_match = _NUMERIC_DATE_RE.match(value)
        if numeric_match:
            parts = re.split(r'[/-]', numeric_match.group(0))
            try:
                first = int(parts[0])
                second = int(parts[1])
            except ValueError:
                first = second = -1

            if first > 12 and second <= 31:
                dayfirst_preferred = True
            elif second > 12 and first <= 12:
                dayfirst_preferred = False
            else:
                dayfirst_preferred = settings.date_default_dayfirst

            parse_attempts.append(
                lambda v, df=dayfirst_preferred: pd.to_datetime(v, dayfirst=df, errors='raise')
            )
            parse_attempts.append(
                lambda v, df=not dayfirst_preferred: pd.to_datetime(v, dayfirst=df, errors='raise')
            )

    parse_attempts.append(lambda v: pd.to_datetime(v, errors='raise'))

    dt = None
    last_error = None
    for attempt in parse_attempts:
        try:
            dt = attempt(value)
        except Exception as exc:
            last_error = exc
            continue
        if dt is not None and not pd.isna(dt):
            break
        dt = None

    if dt is None:
        if log_failures:
            _record_parse_failure(value, log_context, last_error or ValueError("Unable to determine format"))
        return None

    if dt.tzinfo is not None:
        dt = dt.tz_localize(None)
    return dt.to_pydatetime()


def parse_flexible_date(value: Any, *, log_context: Optional[str] = None, log_failures: bool = True) -> Optional[date]:
    """Parse a cell into a calendar date, dropping any time component."""
    dt = parse_flexible_datetime(value, log_context=log_context, log_failures=log_failures)
    return dt.date() if dt is not None else None


def parse_time_of_day(value: Any) -> Optional[str]:
    """
    Parse a standalone time cell ("2:30 PM", "14:30", "9am") into ``HH:MM``.

    Returns None for blank or unrecognised values.
    """
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.strftime("%H:%M")

    match = _TIME_ONLY_RE.match(str(value))
    if not match:
        return None
    # A bare number only counts as a time when it carries a meridiem ("9am").
    if match.group("minute") is None and match.group("meridiem") is None:
        return None

    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    meridiem = (match.group("meridiem") or "").lower().replace(".", "").replace(" ", "")
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "pm" and hour != 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def split_schedule(value: Any, *, log_context: Optional[str] = None) -> Tuple[Optional[date], Optional[str]]:
    """
    Split a combined schedule cell into (date, "HH:MM").

    The time part is only reported when the cell actually carries one; a plain
    date yields ``(date, None)``.
    """
    if _is_blank(value):
        return None, None
    if isinstance(value, datetime):
        return value.date(), value.strftime("%H:%M")
    if isinstance(value, date):
        return value, None

    text = str(value).strip()
    time_only = parse_time_of_day(text)
    if time_only is not None:
        return None, time_only

    dt = parse_flexible_datetime(text, log_context=log_context)
    if dt is None:
        return None, None
    has_time = bool(_EMBEDDED_TIME_RE.search(text))
    return dt.date(), (dt.strftime("%H:%M") if has_time else None)


def days_remaining(due: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole days from ``today`` until ``due``; negative when overdue."""
    if due is None:
        return None
    today = today or date.today()
    return (due - today).days


def urgency_for_days(days: Optional[int]) -> str:
    """Map days remaining onto the urgency tiers used throughout the service."""
    if days is None:
        return "UNKNOWN"
    if days <= settings.urgency_critical_days:
        return "CRITICAL"
    if days <= settings.urgency_urgent_days:
        return "URGENT"
    if days <= settings.urgency_soon_days:
        return "SOON"
    return "NORMAL"
