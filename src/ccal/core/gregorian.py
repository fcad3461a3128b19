# src/ccal/core/gregorian.py
"""
Gregorian collaborator.

Absolute dates are proleptic-Gregorian day numbers with day 1 = 0001-01-01,
which is exactly what date.toordinal() counts.
"""
from __future__ import annotations

import calendar
from datetime import date

AbsoluteDate = int


def absolute_from_gregorian(d: date) -> AbsoluteDate:
    return d.toordinal()


def gregorian_from_absolute(d: AbsoluteDate) -> date:
    return date.fromordinal(int(d))


def year_of(d: AbsoluteDate) -> int:
    """Gregorian year containing absolute date d."""
    return gregorian_from_absolute(d).year


def last_day_of_month(month: int, year: int) -> int:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12 (got {month})")
    return calendar.monthrange(year, month)[1]
