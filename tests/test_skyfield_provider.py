from __future__ import annotations

import os
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from ccal.core.astronomy import AstronomyEngine, angdiff180, make_provider
from ccal.core.config import ProviderConfig
from ccal.core.gregorian import absolute_from_gregorian as A
from ccal.core.oracle import AstronomicalOracle
from ccal.core.providers.skyfield_provider import SkyfieldProvider
from ccal.core.timecontext import CHINA_TIME_CONTEXT

UTC = timezone.utc


def _find_ephemeris_path() -> Path | None:
    env = os.environ.get("CCAL_EPHEMERIS_PATH")
    if env:
        p = Path(env).expanduser()
        if p.exists():
            return p

    repo = Path(__file__).resolve().parents[1]
    for name in ("de440s.bsp", "de421.bsp"):
        p = repo / "data" / name
        if p.exists():
            return p
    return None


def _require_ephemeris() -> Path:
    p = _find_ephemeris_path()
    if p is None:
        pytest.skip("ephemeris not found (set CCAL_EPHEMERIS_PATH or place data/de440s.bsp)")
    return p


def test_missing_ephemeris_is_reported(tmp_path):
    with pytest.raises(FileNotFoundError):
        SkyfieldProvider(ephemeris_path=tmp_path / "nope.bsp")


def test_make_provider_skyfield_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        make_provider(ProviderConfig(name="skyfield", ephemeris_path=tmp_path / "nope.bsp"))


def test_skyfield_longitudes_at_known_events():
    provider = SkyfieldProvider(ephemeris_path=_require_ephemeris())
    eng = AstronomyEngine(provider=provider)

    assert abs(angdiff180(eng.sun_lon(datetime(2024, 3, 20, 3, 6, tzinfo=UTC)))) < 0.01
    assert abs(eng.moon_sun_lon_diff(datetime(2024, 2, 9, 22, 59, tzinfo=UTC))) < 0.05


def test_skyfield_oracle_agrees_on_days():
    provider = SkyfieldProvider(ephemeris_path=_require_ephemeris())
    oracle = AstronomicalOracle(engine=AstronomyEngine(provider=provider))

    assert oracle.next_new_moon_on_or_after(A(date(2024, 2, 1)), CHINA_TIME_CONTEXT) == A(date(2024, 2, 10))
    assert oracle.next_solar_term_on_or_after(A(date(2024, 12, 15)), CHINA_TIME_CONTEXT) == A(date(2024, 12, 21))
