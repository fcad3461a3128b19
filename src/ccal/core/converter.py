# src/ccal/core/converter.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import List, Optional, Tuple

from .astronomy import make_engine
from .cache import YearCache
from .config import CCalConfig, ProviderConfig
from .errors import InvalidCycle, InvalidDay, InvalidMonth, InvalidYear
from .gregorian import AbsoluteDate, absolute_from_gregorian, gregorian_from_absolute, year_of
from .oracle import AstronomicalOracle
from .seed import seed_structures
from .timecontext import CHINA_TIME_CONTEXT, TimeContext
from .year_structure import MonthEntry, MonthLabel, YearStructure, YearStructureBuilder

log = logging.getLogger(__name__)

# Chinese year number c (= cycle * 60 + year) of the year whose new year falls in Gregorian year g
CHINESE_YEAR_OFFSET = 2697

NEW_YEAR_LABEL = MonthLabel(1)


@dataclass(frozen=True)
class ChineseDate:
    cycle: int
    year: int
    month: MonthLabel
    day: int

    @property
    def year_stem(self) -> int:
        """Celestial stem of the year, 1..10."""
        return 1 + (self.year - 1) % 10

    @property
    def year_branch(self) -> int:
        """Terrestrial branch of the year, 1..12."""
        return 1 + (self.year - 1) % 12


def _check_cycle_year(cycle: int, year: int) -> None:
    if isinstance(cycle, bool) or not isinstance(cycle, int) or cycle < 1:
        raise InvalidCycle(f"cycle must be an int >= 1 (got {cycle!r})")
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 60:
        raise InvalidYear(f"year must be 1..60 (got {year!r})")


def gregorian_year_of(cycle: int, year: int) -> int:
    """Gregorian year in which the given Chinese year begins."""
    return cycle * 60 + year - CHINESE_YEAR_OFFSET


class ChineseCalendar:
    """
    AbsoluteDate <-> ChineseDate conversion over a YearCache.
    """

    def __init__(self, cache: YearCache) -> None:
        self.cache = cache

    # ------------------------------------------------------------
    # year views
    # ------------------------------------------------------------
    def year_structure(self, solar_year: int) -> YearStructure:
        return self.cache.get(solar_year)

    def _chinese_year_months(self, cycle: int, year: int) -> Tuple[List[MonthEntry], AbsoluteDate]:
        """
        Months of one Chinese year, from its month 1 up to (excluding) the next
        month 1, plus the start day of that next month 1.
        """
        g = gregorian_year_of(cycle, year)
        this_year = self.cache.get(g)
        i = this_year.index_of(NEW_YEAR_LABEL)
        if i is None:
            raise RuntimeError(f"solar year {g} has no month 1: {[str(x) for x in this_year.labels]}")

        months = list(this_year.months[i:]) + list(self.cache.get(g + 1).months)
        for j in range(1, len(months)):
            if months[j].label == NEW_YEAR_LABEL:
                return months[:j], months[j].start
        raise RuntimeError(f"solar year {g + 1} has no month 1")

    def months_in_year(self, cycle: int, year: int) -> List[MonthLabel]:
        """Month labels of the Chinese year in order, leap month included."""
        _check_cycle_year(cycle, year)
        months, _end = self._chinese_year_months(cycle, year)
        return [m.label for m in months]

    def _locate(self, cycle: int, year: int, month: MonthLabel) -> Tuple[AbsoluteDate, int]:
        if not isinstance(month, MonthLabel):
            raise InvalidMonth(f"month must be a MonthLabel (got {month!r})")
        months, end = self._chinese_year_months(cycle, year)
        for i, m in enumerate(months):
            if m.label == month:
                nxt = months[i + 1].start if i + 1 < len(months) else end
                return m.start, nxt - m.start
        raise InvalidMonth(f"cycle {cycle} year {year} has no month {month}")

    def month_length(self, cycle: int, year: int, month: MonthLabel) -> int:
        _check_cycle_year(cycle, year)
        _start, length = self._locate(cycle, year, month)
        return length

    def new_year(self, gregorian_year: int) -> AbsoluteDate:
        """Absolute date of month 1 day 1 of the Chinese year beginning in gregorian_year."""
        ys = self.cache.get(gregorian_year)
        i = ys.index_of(NEW_YEAR_LABEL)
        if i is None:
            raise RuntimeError(f"solar year {gregorian_year} has no month 1")
        return ys.months[i].start

    # ------------------------------------------------------------
    # conversions
    # ------------------------------------------------------------
    def to_absolute(self, cd: ChineseDate) -> AbsoluteDate:
        _check_cycle_year(cd.cycle, cd.year)
        if isinstance(cd.day, bool) or not isinstance(cd.day, int) or not 1 <= cd.day <= 30:
            raise InvalidDay(f"day must be 1..30 (got {cd.day!r})")

        start, length = self._locate(cd.cycle, cd.year, cd.month)
        if cd.day > length:
            raise InvalidDay(
                f"month {cd.month} of cycle {cd.cycle} year {cd.year} has {length} days (got day {cd.day})"
            )
        return start + cd.day - 1

    def from_absolute(self, d: AbsoluteDate) -> ChineseDate:
        g = year_of(d)
        months: List[MonthEntry] = []
        for y in (g - 1, g, g + 1):
            months.extend(self.cache.get(y).months)

        # c counts Chinese years; the first entry belongs to the year that began in g-2
        c = g + CHINESE_YEAR_OFFSET - 2
        i = 0
        while months[i + 1].start <= d:
            if months[i + 1].label == NEW_YEAR_LABEL:
                c += 1
            i += 1

        first = months[i]
        return ChineseDate(
            cycle=(c - 1) // 60,
            year=1 + (c - 1) % 60,
            month=first.label,
            day=d - first.start + 1,
        )

    def from_gregorian(self, d: date) -> ChineseDate:
        return self.from_absolute(absolute_from_gregorian(d))

    def to_gregorian(self, cd: ChineseDate) -> date:
        return gregorian_from_absolute(self.to_absolute(cd))


def make_calendar(
    config: Optional[CCalConfig] = None,
    *,
    time_context: TimeContext = CHINA_TIME_CONTEXT,
) -> ChineseCalendar:
    """
    Wire provider -> oracle -> builder -> cache -> calendar from configuration.
    Without a config the provider is taken from the environment.
    """
    if config is None:
        config = CCalConfig(provider=ProviderConfig.from_env())

    oracle = AstronomicalOracle(engine=make_engine(config.provider), config=config.oracle)
    builder = YearStructureBuilder(oracle, time_context=time_context)
    seed = seed_structures() if config.use_seed_table else None
    cache = YearCache(builder, seed=seed, maxsize=config.cache_maxsize)
    log.debug("calendar ready provider=%s seeded=%s", config.provider.name, sorted(seed) if seed else [])
    return ChineseCalendar(cache)


@lru_cache(maxsize=4)
def default_calendar(config: Optional[CCalConfig] = None) -> ChineseCalendar:
    """Process-wide calendar, built once per configuration."""
    return make_calendar(config)
