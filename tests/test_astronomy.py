from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from ccal.core.astronomy import AstroProvider, AstronomyEngine, angdiff180, make_provider, norm360
from ccal.core.config import ProviderConfig
from ccal.core.newmoon import next_new_moon_on_or_after
from ccal.core.providers.meeus_provider import MeeusProvider
from ccal.core.rootfind import bracket_by_scan, brentq_datetime
from ccal.core.solarterms import next_principal_term_on_or_after
from ccal.core.timescale import delta_t_seconds

UTC = timezone.utc

ENG = AstronomyEngine(provider=MeeusProvider())


def _minutes_apart(a: datetime, b: datetime) -> float:
    return abs((a - b).total_seconds()) / 60.0


def test_angle_helpers():
    assert norm360(-30.0) == 330.0
    assert norm360(720.5) == pytest.approx(0.5)
    assert angdiff180(350.0) == pytest.approx(-10.0)
    assert angdiff180(-180.0) == 180.0
    assert angdiff180(190.0) == pytest.approx(-170.0)


def test_delta_t_is_plausible():
    assert delta_t_seconds(2000.0) == pytest.approx(63.86, abs=0.01)
    assert 60.0 < delta_t_seconds(2024.0) < 80.0
    assert -5.0 < delta_t_seconds(1900.0) < 5.0


def test_meeus_provider_satisfies_protocol():
    assert isinstance(MeeusProvider(), AstroProvider)


def test_make_provider_default_and_unknown(monkeypatch):
    monkeypatch.delenv("CCAL_PROVIDER", raising=False)
    assert isinstance(make_provider(), MeeusProvider)
    with pytest.raises(ValueError):
        make_provider(ProviderConfig(name="nope"))  # type: ignore[arg-type]


def test_provider_from_env_rejects_unknown(monkeypatch):
    monkeypatch.setenv("CCAL_PROVIDER", "vsop")
    with pytest.raises(ValueError):
        ProviderConfig.from_env()


def test_sun_longitude_at_march_equinox_2024():
    # equinox 2024-03-20 03:06 UTC
    lon = ENG.sun_lon(datetime(2024, 3, 20, 3, 6, tzinfo=UTC))
    assert abs(angdiff180(lon)) < 0.02


def test_phase_near_zero_at_new_moon_2024_02():
    # new moon 2024-02-09 22:59 UTC
    assert abs(ENG.moon_sun_lon_diff(datetime(2024, 2, 9, 22, 59, tzinfo=UTC))) < 0.1


def test_bracket_and_refine_linear_function():
    t0 = datetime(2024, 1, 1, tzinfo=UTC)
    root = t0 + timedelta(hours=30, minutes=17)

    def f(t: datetime) -> float:
        return (t - root).total_seconds()

    brackets = bracket_by_scan(f, t0, t0 + timedelta(days=3), timedelta(hours=6))
    assert len(brackets) == 1
    a, b = brackets[0]
    assert a <= root <= b

    r = brentq_datetime(f, a, b, tol_seconds=0.5)
    assert abs((r.t - root).total_seconds()) <= 1.0


def test_brentq_requires_bracket():
    t0 = datetime(2024, 1, 1, tzinfo=UTC)
    with pytest.raises(ValueError):
        brentq_datetime(lambda t: 1.0, t0, t0 + timedelta(hours=1))


def test_consecutive_new_moons_2024():
    expected = [
        datetime(2024, 1, 11, 11, 57, tzinfo=UTC),
        datetime(2024, 2, 9, 22, 59, tzinfo=UTC),
        datetime(2024, 3, 10, 9, 0, tzinfo=UTC),
    ]
    t = datetime(2024, 1, 1, tzinfo=UTC)
    for want in expected:
        got = next_new_moon_on_or_after(ENG, t)
        assert _minutes_apart(got, want) < 5.0
        t = got + timedelta(hours=1)


def test_next_new_moon_skips_full_moon():
    # full moon 2024-02-24; the next new moon is 2024-03-10
    t = next_new_moon_on_or_after(ENG, datetime(2024, 2, 20, tzinfo=UTC))
    assert _minutes_apart(t, datetime(2024, 3, 10, 9, 0, tzinfo=UTC)) < 5.0


def test_next_principal_term_winter_solstice_2024():
    # solstice 2024-12-21 09:21 UTC
    t = next_principal_term_on_or_after(ENG, datetime(2024, 12, 15, tzinfo=UTC))
    assert _minutes_apart(t, datetime(2024, 12, 21, 9, 21, tzinfo=UTC)) < 20.0


def test_next_principal_term_june_solstice_2024():
    # sun near 71 deg on June 1; the next multiple of 30 is the June solstice, 2024-06-20 20:51 UTC
    t = next_principal_term_on_or_after(ENG, datetime(2024, 6, 1, tzinfo=UTC))
    assert _minutes_apart(t, datetime(2024, 6, 20, 20, 51, tzinfo=UTC)) < 20.0
    assert abs(angdiff180(ENG.sun_lon(t) - 90.0)) < 1e-3


def test_naive_datetimes_are_rejected():
    with pytest.raises(ValueError):
        next_new_moon_on_or_after(ENG, datetime(2024, 2, 1))
