from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from ccal.core.gregorian import (
    absolute_from_gregorian,
    gregorian_from_absolute,
    last_day_of_month,
    year_of,
)
from ccal.core.timecontext import (
    BEIJING_LMT_MINUTES,
    CHINA_TIME_CONTEXT,
    TimeContext,
    china_utc_offset,
)

UTC = timezone.utc


def test_absolute_epoch_and_inverse():
    assert absolute_from_gregorian(date(1, 1, 1)) == 1
    d = absolute_from_gregorian(date(2024, 2, 10))
    assert gregorian_from_absolute(d) == date(2024, 2, 10)
    assert gregorian_from_absolute(d + 20) == date(2024, 3, 1)
    assert year_of(d) == 2024


def test_last_day_of_month():
    assert last_day_of_month(2, 2024) == 29
    assert last_day_of_month(2, 2023) == 28
    assert last_day_of_month(2, 1900) == 28
    assert last_day_of_month(12, 2025) == 31
    with pytest.raises(ValueError):
        last_day_of_month(13, 2025)


def test_china_offset_changes_in_1928():
    assert china_utc_offset(1927) == pytest.approx(465.0 + 40.0 / 60.0)
    assert china_utc_offset(1928) == 480.0
    assert china_utc_offset(2024) == 480.0


def test_local_midnight_utc():
    d = absolute_from_gregorian(date(2024, 2, 10))
    assert CHINA_TIME_CONTEXT.local_midnight_utc(d) == datetime(2024, 2, 9, 16, 0, tzinfo=UTC)

    d1900 = absolute_from_gregorian(date(1900, 6, 1))
    expected = datetime(1900, 6, 1, tzinfo=UTC) - timedelta(minutes=BEIJING_LMT_MINUTES)
    assert CHINA_TIME_CONTEXT.local_midnight_utc(d1900) == expected


def test_local_day_uses_zone_of_query_year():
    t = datetime(2024, 2, 9, 22, 59, tzinfo=UTC)
    assert CHINA_TIME_CONTEXT.local_day(t, year=2024) == absolute_from_gregorian(date(2024, 2, 10))

    utc_ctx = TimeContext(utc_offset=lambda year: 0.0)
    assert utc_ctx.local_day(t, year=2024) == absolute_from_gregorian(date(2024, 2, 9))


def test_local_day_rejects_naive_datetime():
    with pytest.raises(ValueError):
        CHINA_TIME_CONTEXT.local_day(datetime(2024, 2, 9, 22, 59), year=2024)


def test_dst_window_shifts_local_day():
    start = absolute_from_gregorian(date(1988, 4, 10))
    end = absolute_from_gregorian(date(1988, 9, 11))
    ctx = TimeContext(
        dst_start=lambda year: start,
        dst_end=lambda year: end,
        dst_offset_minutes=60.0,
    )
    # 23:30 standard time is 00:30 the next day under DST
    t = datetime(1988, 6, 1, 15, 30, tzinfo=UTC)
    assert CHINA_TIME_CONTEXT.local_day(t, year=1988) == absolute_from_gregorian(date(1988, 6, 1))
    assert ctx.local_day(t, year=1988) == absolute_from_gregorian(date(1988, 6, 2))

    # outside the window nothing changes
    t_winter = datetime(1988, 12, 1, 15, 30, tzinfo=UTC)
    assert ctx.local_day(t_winter, year=1988) == absolute_from_gregorian(date(1988, 12, 1))

    # local midnight moves an hour earlier inside the window
    d = absolute_from_gregorian(date(1988, 6, 1))
    assert ctx.local_midnight_utc(d) == datetime(1988, 5, 31, 15, 0, tzinfo=UTC)
