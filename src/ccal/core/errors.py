# src/ccal/core/errors.py
from __future__ import annotations


class ChineseCalendarError(ValueError):
    """Base error for invalid conversions."""


class InvalidCycle(ChineseCalendarError):
    """Sexagesimal cycle number below 1."""


class InvalidYear(ChineseCalendarError):
    """Year-in-cycle outside 1..60."""


class InvalidMonth(ChineseCalendarError):
    """Month ordinal outside 1..12, or a leap month the year does not have."""


class InvalidDay(ChineseCalendarError):
    """Day outside 1..30 or past the end of that particular lunar month."""


class OracleOutOfRange(ChineseCalendarError):
    """Astronomical lookup requested outside the validated date window."""
