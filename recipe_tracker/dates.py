"""Calendar-day arithmetic used to measure how long ago a recipe was eaten."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, datetime]


def _as_calendar_day(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(reference: DateLike, past: Optional[DateLike]) -> Optional[int]:
    """Return the number of whole days from ``past`` to ``reference``.

    Time of day is ignored. ``None`` means "unbounded": either ``past`` is
    missing (never eaten) or it lies after ``reference``. A future date is
    reported as unbounded so that a mistyped date never hides a recipe from
    the suggestions.
    """

    if past is None:
        return None

    delta = (_as_calendar_day(reference) - _as_calendar_day(past)).days
    if delta < 0:
        return None
    return delta


def parse_date(value: object) -> Optional[date]:
    """Convert a stored or submitted value to a calendar date.

    Accepts ``None``, empty strings, ISO ``YYYY-MM-DD`` strings, dates and
    datetimes. Raises :class:`ValueError` for anything else.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return date.fromisoformat(text)
    raise ValueError(f"Unsupported date value: {value!r}")


def format_date(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def describe_last_eaten(days: Optional[int]) -> str:
    """Phrase a day count for the recipe list."""

    if days is None:
        return "Not eaten yet."
    if days == 0:
        return "(Today)"
    if days == 1:
        return "(Yesterday)"
    return f"({days} days ago)"


def describe_for_suggestion(days: Optional[int]) -> str:
    """Phrase a day count for the suggestion list."""

    if days is None:
        return "(Never eaten)"
    if days == 0:
        return "(Eaten today)"
    if days == 1:
        return "(Eaten yesterday)"
    return f"(Eaten {days} days ago)"


__all__ = [
    "days_between",
    "describe_for_suggestion",
    "describe_last_eaten",
    "format_date",
    "parse_date",
]
