"""Calendar helpers. Weeks start on Monday; dates are local calendar days."""

from __future__ import annotations

from datetime import date, timedelta

WEEKDAY_ABBR = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def parse_date(value: date | str) -> date:
    """Accept a date or a YYYY-MM-DD key. Raises ValueError on bad input.

    Other ISO 8601 spellings ("20250314", "2025-W11-5") are rejected so every
    ledger key has exactly one form.
    """
    if isinstance(value, date):
        return value
    text = str(value).strip()
    d = date.fromisoformat(text)
    if d.isoformat() != text:
        raise ValueError(f"Expected a YYYY-MM-DD date: {value!r}")
    return d


def date_key(value: date | str) -> str:
    """Normalise a date or key to the YYYY-MM-DD ledger key."""
    return parse_date(value).isoformat()


def week_start(value: date | str) -> date:
    """The Monday on or before *value*; a Sunday belongs to the preceding Monday."""
    d = parse_date(value)
    return d - timedelta(days=d.weekday())


def week_dates(value: date | str) -> list[date]:
    """The seven days (Mon..Sun) of the week containing *value*."""
    monday = week_start(value)
    return [monday + timedelta(days=i) for i in range(7)]


def is_weekend(value: date | str) -> bool:
    return parse_date(value).weekday() >= 5


def format_weekday(value: date | str) -> str:
    return WEEKDAY_ABBR[parse_date(value).weekday()]


def format_short(value: date | str) -> str:
    """'Mon 10 Mar' — fixed English labels, independent of the process locale."""
    d = parse_date(value)
    return f"{WEEKDAY_ABBR[d.weekday()]} {d.day} {MONTH_ABBR[d.month - 1]}"
