# src/ccal/core/timecontext.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from .gregorian import AbsoluteDate, gregorian_from_absolute
from .timeutil import UTC, as_utc

# Beijing local mean time (116°25' E) until the 1928 standard-time definition
BEIJING_LMT_MINUTES = 465.0 + 40.0 / 60.0
BEIJING_STANDARD_MINUTES = 480.0
TIMEZONE_CUTOVER_YEAR = 1928


def china_utc_offset(year: int) -> float:
    if year < TIMEZONE_CUTOVER_YEAR:
        return BEIJING_LMT_MINUTES
    return BEIJING_STANDARD_MINUTES


@dataclass(frozen=True)
class TimeContext:
    """
    Local-time rule passed to every oracle call.

    utc_offset:
        minutes east of UTC as a function of the Gregorian year.
    dst_start / dst_end:
        optional absolute dates (per year) of the daylight-saving window,
        [start, end) in local days.
    dst_offset_minutes:
        extra minutes applied inside the window (0 disables DST).
    """
    utc_offset: Callable[[int], float] = china_utc_offset
    dst_start: Optional[Callable[[int], AbsoluteDate]] = None
    dst_end: Optional[Callable[[int], AbsoluteDate]] = None
    dst_offset_minutes: float = 0.0

    def utc_offset_minutes(self, year: int) -> float:
        return float(self.utc_offset(year))

    def _dst_minutes(self, local_day: AbsoluteDate, year: int) -> float:
        if not self.dst_offset_minutes or self.dst_start is None or self.dst_end is None:
            return 0.0
        if self.dst_start(year) <= local_day < self.dst_end(year):
            return float(self.dst_offset_minutes)
        return 0.0

    def local_midnight_utc(self, d: AbsoluteDate) -> datetime:
        """UTC instant of local 00:00 on absolute date d."""
        g = gregorian_from_absolute(d)
        offset = self.utc_offset_minutes(g.year) + self._dst_minutes(d, g.year)
        return datetime.combine(g, time(0), tzinfo=UTC) - timedelta(minutes=offset)

    def local_day(self, t_utc: datetime, *, year: int) -> AbsoluteDate:
        """
        Absolute date of the local calendar day containing t_utc.
        year selects the zone rule (the year of the query, not of the result).
        """
        t = as_utc(t_utc, "t_utc")
        local = t + timedelta(minutes=self.utc_offset_minutes(year))
        d = local.date().toordinal()
        dst = self._dst_minutes(d, year)
        if dst:
            d = (local + timedelta(minutes=dst)).date().toordinal()
        return d


CHINA_TIME_CONTEXT = TimeContext()
