from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional, TypeVar

from fastapi import APIRouter, HTTPException, Path, Query
from pydantic import BaseModel, Field

from ccal.core.converter import ChineseCalendar, ChineseDate, default_calendar, gregorian_year_of
from ccal.core.errors import ChineseCalendarError
from ccal.core.gregorian import absolute_from_gregorian, gregorian_from_absolute
from ccal.core.year_structure import MonthLabel

router = APIRouter(prefix="/api/v1/chinese", tags=["chinese"])

log = logging.getLogger("ccal.api.public")

T = TypeVar("T")


# ============================================================
# Response Models
# ============================================================
class MonthLabelModel(BaseModel):
    ordinal: int = Field(ge=1, le=12)
    is_leap: bool = Field(default=False, description="true for the leap month")

    @classmethod
    def of(cls, label: MonthLabel) -> "MonthLabelModel":
        return cls(ordinal=label.ordinal, is_leap=label.is_leap)


class ChineseDateModel(BaseModel):
    cycle: int
    year: int
    month: MonthLabelModel
    day: int
    year_stem: int = Field(description="1..10")
    year_branch: int = Field(description="1..12")

    @classmethod
    def of(cls, cd: ChineseDate) -> "ChineseDateModel":
        return cls(
            cycle=cd.cycle,
            year=cd.year,
            month=MonthLabelModel.of(cd.month),
            day=cd.day,
            year_stem=cd.year_stem,
            year_branch=cd.year_branch,
        )


class DateResponse(BaseModel):
    date: date
    absolute: int
    chinese: ChineseDateModel


class GregorianResponse(BaseModel):
    chinese: ChineseDateModel
    date: date
    absolute: int


class YearMonth(BaseModel):
    label: MonthLabelModel
    start: date


class YearResponse(BaseModel):
    solar_year: int
    months: List[YearMonth]
    leap_month: Optional[MonthLabelModel] = None


class MonthsResponse(BaseModel):
    cycle: int
    year: int
    gregorian_year: int = Field(description="Gregorian year in which this Chinese year begins")
    months: List[MonthLabelModel]


# ============================================================
# helpers
# ============================================================
def _calendar() -> ChineseCalendar:
    return default_calendar()


def _parse_iso_date(s: str) -> date:
    try:
        return date.fromisoformat(s)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid date format: {s} (expected YYYY-MM-DD)") from e


def _run(what: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except ChineseCalendarError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except (FileNotFoundError, RuntimeError) as e:
        log.exception("calendar computation failed: %s", what)
        raise HTTPException(status_code=503, detail="calendar computation unavailable") from e


# ============================================================
# routes
# ============================================================
@router.get("/date", response_model=DateResponse)
def get_chinese_date(
    date_str: str = Query(..., alias="date", description="YYYY-MM-DD"),
) -> DateResponse:
    d = _parse_iso_date(date_str)
    cal = _calendar()
    cd = _run(f"/date date={d}", lambda: cal.from_gregorian(d))
    return DateResponse(date=d, absolute=absolute_from_gregorian(d), chinese=ChineseDateModel.of(cd))


@router.get("/gregorian", response_model=GregorianResponse)
def get_gregorian_date(
    cycle: int = Query(..., ge=1),
    year: int = Query(..., ge=1, le=60),
    month: int = Query(..., ge=1, le=12),
    day: int = Query(..., ge=1, le=30),
    leap: bool = Query(False, description="leap month"),
) -> GregorianResponse:
    cal = _calendar()

    def convert() -> GregorianResponse:
        cd = ChineseDate(cycle=cycle, year=year, month=MonthLabel(month, leap), day=day)
        absolute = cal.to_absolute(cd)
        return GregorianResponse(
            chinese=ChineseDateModel.of(cd),
            date=gregorian_from_absolute(absolute),
            absolute=absolute,
        )

    return _run(f"/gregorian {cycle}/{year}/{month}{'L' if leap else ''}/{day}", convert)


@router.get("/year/{solar_year}", response_model=YearResponse)
def get_year_structure(
    solar_year: int = Path(..., ge=1901, le=2299),
) -> YearResponse:
    cal = _calendar()
    ys = _run(f"/year {solar_year}", lambda: cal.year_structure(solar_year))
    leap = ys.leap_month
    return YearResponse(
        solar_year=ys.solar_year,
        months=[YearMonth(label=MonthLabelModel.of(m.label), start=gregorian_from_absolute(m.start)) for m in ys],
        leap_month=MonthLabelModel.of(leap.label) if leap is not None else None,
    )


@router.get("/months", response_model=MonthsResponse)
def get_months(
    cycle: int = Query(..., ge=1),
    year: int = Query(..., ge=1, le=60),
) -> MonthsResponse:
    cal = _calendar()
    labels = _run(f"/months {cycle}/{year}", lambda: cal.months_in_year(cycle, year))
    return MonthsResponse(
        cycle=cycle,
        year=year,
        gregorian_year=gregorian_year_of(cycle, year),
        months=[MonthLabelModel.of(x) for x in labels],
    )
