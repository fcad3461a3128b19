# src/ccal/core/year_structure.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterator, List, Optional, Protocol, Tuple

from .errors import InvalidMonth
from .gregorian import AbsoluteDate, absolute_from_gregorian
from .timecontext import CHINA_TIME_CONTEXT, TimeContext

log = logging.getLogger(__name__)

# solar-term searches for a year start here; the winter solstice follows within a week
SOLSTICE_SEARCH_MONTH = 12
SOLSTICE_SEARCH_DAY = 15


# ============================
# Data models
# ============================

@dataclass(frozen=True, order=True)
class MonthLabel:
    """
    Lunar month number, with the leap variant as an explicit flag.
    Orders as (ordinal, is_leap): a leap month sorts right after its namesake.
    """
    ordinal: int
    is_leap: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.ordinal, bool) or not isinstance(self.ordinal, int):
            raise InvalidMonth(f"month ordinal must be an int (got {self.ordinal!r})")
        if not 1 <= self.ordinal <= 12:
            raise InvalidMonth(f"month ordinal must be 1..12 (got {self.ordinal})")

    def __str__(self) -> str:
        return f"{self.ordinal}L" if self.is_leap else str(self.ordinal)


@dataclass(frozen=True)
class MonthEntry:
    label: MonthLabel
    start: AbsoluteDate


@dataclass(frozen=True)
class YearStructure:
    """
    Lunar months of one solar year: from the month after the previous winter
    solstice through the month containing this year's winter solstice.
    """
    solar_year: int
    months: Tuple[MonthEntry, ...]

    def __len__(self) -> int:
        return len(self.months)

    def __iter__(self) -> Iterator[MonthEntry]:
        return iter(self.months)

    @property
    def labels(self) -> List[MonthLabel]:
        return [m.label for m in self.months]

    @property
    def starts(self) -> List[AbsoluteDate]:
        return [m.start for m in self.months]

    @property
    def leap_month(self) -> Optional[MonthEntry]:
        for m in self.months:
            if m.label.is_leap:
                return m
        return None

    def index_of(self, label: MonthLabel) -> Optional[int]:
        for i, m in enumerate(self.months):
            if m.label == label:
                return i
        return None


class MonthOracle(Protocol):
    def next_solar_term_on_or_after(self, d: AbsoluteDate, ctx: TimeContext) -> AbsoluteDate: ...
    def next_new_moon_on_or_after(self, d: AbsoluteDate, ctx: TimeContext) -> AbsoluteDate: ...


# ============================
# Builder
# ============================

class YearStructureBuilder:
    """
    Month starts between two winter solstices, numbered with leap insertion.

    A month lacks a principal term when the next principal term on/after its
    start falls on or after the start of the following month.
    """

    def __init__(self, oracle: MonthOracle, time_context: TimeContext = CHINA_TIME_CONTEXT) -> None:
        self.oracle = oracle
        self.time_context = time_context

    def _term(self, d: AbsoluteDate) -> AbsoluteDate:
        return self.oracle.next_solar_term_on_or_after(d, self.time_context)

    def _new_moon(self, d: AbsoluteDate) -> AbsoluteDate:
        return self.oracle.next_new_moon_on_or_after(d, self.time_context)

    def winter_solstice(self, solar_year: int) -> AbsoluteDate:
        d = date(solar_year, SOLSTICE_SEARCH_MONTH, SOLSTICE_SEARCH_DAY)
        return self._term(absolute_from_gregorian(d))

    def month_starts(self, start: AbsoluteDate, end: AbsoluteDate) -> List[AbsoluteDate]:
        """New-moon days in [start, end], ascending."""
        out: List[AbsoluteDate] = []
        d = start
        while d <= end:
            nm = self._new_moon(d)
            if nm > end:
                break
            out.append(nm)
            d = nm + 1
        return out

    def _number_from(self, starts: List[AbsoluteDate], i: int, k: int) -> List[Tuple[MonthLabel, AbsoluteDate]]:
        """Number starts[i:] from k, inserting at most one leap month."""
        out: List[Tuple[MonthLabel, AbsoluteDate]] = []
        n = len(starts)
        while i < n:
            out.append((MonthLabel(k), starts[i]))
            remaining = n - i
            if 12 - k - remaining == 0:
                # exactly k..11 left: no room for a leap month
                i, k = i + 1, k + 1
                continue
            if i + 2 < n and starts[i + 2] <= self._term(starts[i + 1]):
                out.append((MonthLabel(k, True), starts[i + 1]))
                i, k = i + 2, k + 1
                continue
            i, k = i + 1, k + 1
        return out

    def number_months(self, starts: List[AbsoluteDate]) -> List[Tuple[MonthLabel, AbsoluteDate]]:
        if len(starts) == 12:
            return [(MonthLabel(12), starts[0])] + [
                (MonthLabel(k), s) for k, s in enumerate(starts[1:], start=1)
            ]

        if len(starts) != 13:
            raise RuntimeError(f"expected 12 or 13 new moons between solstices, got {len(starts)}")

        sign = self._term(starts[0])
        if starts[0] > sign or sign >= starts[1]:
            # the month after the previous solstice has no principal term
            head = [(MonthLabel(11, True), starts[0]), (MonthLabel(12), starts[1])]
            return head + self._number_from(starts, 2, 1)

        head = [(MonthLabel(12), starts[0])]
        if self._term(starts[1]) >= starts[2]:
            return head + [(MonthLabel(12, True), starts[1])] + self._number_from(starts, 2, 1)
        return head + self._number_from(starts, 1, 1)

    def build_year(self, solar_year: int) -> YearStructure:
        current = self.winter_solstice(solar_year)
        previous = self.winter_solstice(solar_year - 1)
        starts = self.month_starts(previous + 1, current)

        numbered = self.number_months(starts)
        ys = YearStructure(
            solar_year=solar_year,
            months=tuple(MonthEntry(label, start) for label, start in numbered),
        )

        leap = ys.leap_month
        if len(ys) == 13 and leap is None:
            log.warning("solar year %d has 13 months but none lacks a principal term", solar_year)
        log.debug(
            "built solar year %d: %d months, leap=%s",
            solar_year, len(ys), leap.label if leap is not None else None,
        )
        return ys
