# src/ccal/core/oracle.py
from __future__ import annotations

from dataclasses import dataclass, field

from .astronomy import AstronomyEngine
from .config import OracleConfig
from .errors import OracleOutOfRange
from .gregorian import AbsoluteDate, absolute_from_gregorian, year_of
from .newmoon import next_new_moon_on_or_after as _next_new_moon_utc
from .solarterms import next_principal_term_on_or_after as _next_principal_term_utc
from .timecontext import TimeContext


@dataclass(frozen=True)
class AstronomicalOracle:
    """
    Solar-term and new-moon lookups on absolute dates.

    Each search starts at local midnight of the requested day under the given
    TimeContext; the event instant is mapped back to the local day that
    contains it (same zone rule, i.e. the year of the request).
    """

    engine: AstronomyEngine
    config: OracleConfig = field(default_factory=OracleConfig)

    @property
    def valid_range(self) -> tuple[AbsoluteDate, AbsoluteDate]:
        return (
            absolute_from_gregorian(self.config.valid_from),
            absolute_from_gregorian(self.config.valid_to),
        )

    def _check_range(self, d: AbsoluteDate) -> None:
        lo, hi = self.valid_range
        if not lo <= d <= hi:
            raise OracleOutOfRange(
                f"astronomical lookup for absolute date {d} outside {self.config.valid_from.isoformat()} .. {self.config.valid_to.isoformat()}"
            )

    def next_solar_term_on_or_after(self, d: AbsoluteDate, ctx: TimeContext) -> AbsoluteDate:
        """Local day of the first 30-degree solar longitude crossing at or after day d."""
        self._check_range(d)
        year = year_of(d)
        t = _next_principal_term_utc(
            self.engine, ctx.local_midnight_utc(d), config=self.config.solarterm
        )
        return ctx.local_day(t, year=year)

    def next_new_moon_on_or_after(self, d: AbsoluteDate, ctx: TimeContext) -> AbsoluteDate:
        """Local day of the first new moon at or after day d."""
        self._check_range(d)
        year = year_of(d)
        t = _next_new_moon_utc(
            self.engine, ctx.local_midnight_utc(d), config=self.config.newmoon
        )
        return ctx.local_day(t, year=year)
